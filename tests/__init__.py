"""Tests for the module search service.

The module index is replaced by an in-memory ``httpx.MockTransport`` stub, so
nothing here needs network access.
"""
