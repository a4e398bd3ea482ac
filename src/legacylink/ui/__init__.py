"""Outer surfaces: DTOs for the API layer and the operational CLI."""
