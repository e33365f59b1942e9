"""
Core of the storefront builder.

This package contains everything the HTTP API and the CLI build on:
- Domain models (Store, PhysicalProduct, DigitalProduct, User)
- JSON-backed store provider
- Catalog view-model for the dashboard product list
- Product form reconciler
- Storefront page state
- Merchant session and dashboard overview
"""

from shop.models import (
    DigitalProduct,
    DigitalProductType,
    PhysicalProduct,
    Product,
    Store,
    StoreType,
    User,
    parse_product,
)
from shop.data_store import DataStore, DataStoreError, ProductNotFoundError, StoreNotFoundError
from shop.catalog import CatalogQuery, ProductCatalogView, SortDirection, VisibilityFilter, filter_products
from shop.product_form import FormValidationError, ProductFormReconciler, ProductFormState
from shop.storefront import StorefrontPage
from shop.session import NotAuthenticatedError, Session

__all__ = [
    "DigitalProduct",
    "DigitalProductType",
    "PhysicalProduct",
    "Product",
    "Store",
    "StoreType",
    "User",
    "parse_product",
    "DataStore",
    "DataStoreError",
    "ProductNotFoundError",
    "StoreNotFoundError",
    "CatalogQuery",
    "ProductCatalogView",
    "SortDirection",
    "VisibilityFilter",
    "filter_products",
    "FormValidationError",
    "ProductFormReconciler",
    "ProductFormState",
    "StorefrontPage",
    "NotAuthenticatedError",
    "Session",
]
