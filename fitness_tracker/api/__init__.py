"""
API module for the Fitness Tracker server.

This module provides the external interface: a JSON-over-HTTP application
built with aiohttp. It is also the request-boundary serializer: handlers run
one at a time, so the core stores and services take no locks of their own.

Invariants:
    - One request is in a service call at any moment
    - Validation failures never reach the stores

How to change safely:
    - Add new endpoints rather than changing existing response shapes
"""

from .http_server import create_http_app

__all__ = [
    "create_http_app",
]
