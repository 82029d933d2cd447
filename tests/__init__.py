"""
Fitness Tracker Test Suite.

This package contains:
- unit/: Unit tests (in-memory and temporary SQLite stores)
- integration/: Restart durability, end-to-end scenario and HTTP API tests
"""
