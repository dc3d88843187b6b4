"""HTTP routers for the Competitor Intel API."""
