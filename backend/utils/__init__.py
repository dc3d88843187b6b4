"""Shared helpers for Competitor Intel."""
