"""Domain services for Competitor Intel."""
