"""
Fitness Tracker Server - record service for users, activities, challenges and follows.

This package implements a small backend built on:
- A durable Identifier Generator issuing strictly increasing 64-bit ids
- A generic Typed Record Store (one region per entity kind)
- Thin entity services layering validation and derived views on the store
- An aiohttp HTTP surface that runs requests one at a time

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌─────────────────┐
    │   Client    │────▶│    HTTP     │────▶│ Entity services │
    │             │     │  (aiohttp)  │     │ users, activity │
    └─────────────┘     └─────────────┘     │ challenge,follow│
                                            └────────┬────────┘
                                                     │
                        ┌────────────────────────────┼───────────┐
                        │                            │           │
                        ▼                            ▼           ▼
                  ┌───────────┐              ┌─────────────┐  ┌───────┐
                  │Identifier │              │Record stores│  │ Views │
                  │ Generator │              │ (per kind)  │  │filter │
                  └─────┬─────┘              └──────┬──────┘  │ top-K │
                        │                           │         └───────┘
                        ▼                           ▼
                  ┌─────────────────────────────────────┐
                  │   SQLite file (disjoint regions)    │
                  └─────────────────────────────────────┘

Invariants:
    - Identifiers are never reused, never decremented
    - store.lookup(k).id == k for every stored record
    - Validation happens before any id is issued or any write is made
    - Records are never deleted

How to change safely:
    - New record fields must keep from_bytes(to_bytes(r)) == r
    - Keep MAX_RECORD_SIZE large enough for every existing stored record
    - New entity kinds get their own region name
"""

from ._version import __version__

__all__ = ["__version__"]
