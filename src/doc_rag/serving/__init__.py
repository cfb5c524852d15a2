"""
Serving: FastAPI application for document upload, querying and search.

The core ingestion and query services hold no HTTP concerns; this module
only adapts them to REST and wires the production backends.
"""
