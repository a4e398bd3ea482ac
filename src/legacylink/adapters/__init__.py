"""Adapters connecting the domain ports to concrete stores."""
