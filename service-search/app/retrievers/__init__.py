"""Retrieval layer for the module index.

Contents
- ``index_client``: async HTTP client for repositories, listings and sources
"""
