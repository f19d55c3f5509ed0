"""Caching, request-coalescing proxy for the Mojang profile APIs."""
