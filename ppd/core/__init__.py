"""
Core utilities shared across the PPD+ backend.

This package hosts:
- configuration helpers (env vars, storage paths, default rates)
- cross-cutting services such as logging setup, password hashing and
  rate limit helpers.

Services and routers depend on these primitives instead of reading
os.environ or configuring handlers themselves.
"""
