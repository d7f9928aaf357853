"""
AKACorpTech site service.

This package provides a FastAPI application serving the marketing pages and
the admin panel on top of a hosted backend (store, auth, change feed), with
in-memory backends for development and tests.
"""
