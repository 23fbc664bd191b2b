"""Core event overlay logic (countdowns, resolution and modifier merging).

Kept free of FastAPI and Redis concerns so it can be reused by API routes, scripts, and tests.
"""
