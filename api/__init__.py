"""
HTTP API for the storefront builder.

This package provides a single FastAPI application that exposes:
- Mock merchant authentication
- Store lookup by ID or slug
- Dashboard endpoints: overview, product list and product form
- The public storefront page
"""

from api.main import app

__all__ = ["app"]
