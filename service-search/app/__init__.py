"""Module search service package.

Layout:
- ``api``: HTTP endpoint for module search.
- ``search``: candidate collection, scoring and enrichment.
- ``retrievers``: HTTP client for the remote module index.
- ``ranking``: prefix similarity and result ordering.
- ``metadata``: module source scanners.
"""
