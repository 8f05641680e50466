"""API subpackage for the module search service.

The router exposes the search endpoint. The transport layer stays thin and
delegates to ``SearchManager``.
"""
