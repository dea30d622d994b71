"""Catalog search & caching gateway in front of the RAWG API."""
