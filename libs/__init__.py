"""Shared libraries for the module search service.

Subpackages:
- ``libs.common``: configuration, logging, metrics, and tracing.

Notes:
- Avoid search-specific logic here; keep modules cohesive and broadly useful.
"""
