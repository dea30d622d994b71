"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, cache table upserts, rating lookups
- Redis: optional response cache backend

No freshness/ranking logic in stores - that belongs in services.
"""
