"""
JSON-backed store provider for the storefront builder.

This module is the data provider the dashboard and the storefront consume:
it holds the list of stores with their products and exposes product
create/update/delete plus store lookup by id or slug.

Design decisions:
- Fixtures are loaded lazily from ``stores.json`` on first access
- Write operations update in-memory state only; ``reload()`` resets
- Lookups return None when nothing matches, mutations raise
- Product writes go through ``parse_product`` so the physical/digital
  field sets never mix
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from uuid import uuid4

from shop.models import (
    DIGITAL_FIELDS,
    PHYSICAL_FIELDS,
    Product,
    Store,
    parse_product,
)

logger = logging.getLogger("data_store")


class DataStoreError(Exception):
    """Base class for store provider failures."""


class StoreNotFoundError(DataStoreError):
    def __init__(self, store_id: str):
        super().__init__(f"Store not found: {store_id}")
        self.store_id = store_id


class ProductNotFoundError(DataStoreError):
    def __init__(self, store_id: str, product_id: str):
        super().__init__(f"Product not found: {product_id} (store {store_id})")
        self.store_id = store_id
        self.product_id = product_id


class DataStore:
    """
    In-memory store collection seeded from a JSON fixture.

    Stores are kept in fixture order so listings stay stable; products keep
    insertion order inside their store.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Directory containing ``stores.json``.
                     Defaults to ./data relative to project root.
        """
        if data_dir is None:
            data_dir = Path(__file__).parent.parent / "data"

        self.data_dir = Path(data_dir)

        # Loaded lazily, keyed by store id
        self._stores: Optional[dict[str, Store]] = None

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            logger.warning(f"Fixture file missing: {filepath}")
            return []
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    def _ensure_stores_loaded(self) -> dict[str, Store]:
        """Lazy load stores from JSON."""
        if self._stores is None:
            data = self._load_json("stores.json")
            self._stores = {s["id"]: Store(**s) for s in data}
            logger.debug(f"Loaded {len(self._stores)} stores from {self.data_dir}")
        return self._stores

    def _require_store(self, store_id: str) -> Store:
        store = self._ensure_stores_loaded().get(store_id)
        if store is None:
            raise StoreNotFoundError(store_id)
        return store

    # =========================================================================
    # Store Operations
    # =========================================================================

    def list_stores(self) -> list[Store]:
        """Get all stores."""
        return list(self._ensure_stores_loaded().values())

    def get_store(self, store_id: str) -> Optional[Store]:
        """Get a store by ID."""
        return self._ensure_stores_loaded().get(store_id)

    def get_store_by_slug(self, slug: str) -> Optional[Store]:
        """Get a store by its public slug."""
        return next(
            (s for s in self._ensure_stores_loaded().values() if s.slug == slug),
            None,
        )

    def resolve_store(self, store_ref: str) -> Optional[Store]:
        """
        Resolve a storefront URL segment to a store.

        The segment may be an ID or a slug; IDs are tried first.
        """
        return self.get_store(store_ref) or self.get_store_by_slug(store_ref)

    def get_stores_by_owner(self, owner_id: str) -> list[Store]:
        """Get every store a user manages."""
        return [s for s in self._ensure_stores_loaded().values() if s.owner_id == owner_id]

    # =========================================================================
    # Product Operations
    # =========================================================================

    def add_product(
        self, store_id: str, partial: dict[str, Any]
    ) -> Product:
        """
        Create a product in a store from a partial payload.

        Assigns a fresh ID and creation time, fills variant defaults and
        drops empty image URLs. Raises StoreNotFoundError for an unknown
        store and pydantic's ValidationError for an invalid payload.
        """
        store = self._require_store(store_id)

        data = {k: v for k, v in partial.items() if k not in ("id", "created_at")}
        data["id"] = f"prod-{uuid4().hex[:8]}"
        data["created_at"] = datetime.utcnow()
        data["images"] = [img for img in data.get("images", []) if img]

        product = parse_product(data)
        store.products.append(product)

        logger.info(f"Added product {product.id} ({product.name}) to store {store_id}")
        return product

    def update_product(
        self, store_id: str, product_id: str, partial: dict[str, Any]
    ) -> Product:
        """
        Merge a partial payload over an existing product.

        When the payload switches the product between physical and digital,
        the fields of the previous variant are discarded. ID and creation
        time are never overwritten.
        """
        store = self._require_store(store_id)
        index = next(
            (i for i, p in enumerate(store.products) if p.id == product_id),
            None,
        )
        if index is None:
            raise ProductNotFoundError(store_id, product_id)

        current = store.products[index]
        merged = current.model_dump()
        merged.pop("kind")
        merged["is_digital"] = current.is_digital

        changes = {k: v for k, v in partial.items() if k not in ("id", "created_at", "kind")}
        merged.update(changes)

        # Drop the other variant's fields
        stale = PHYSICAL_FIELDS if merged["is_digital"] else DIGITAL_FIELDS
        for field_name in stale:
            merged.pop(field_name, None)
        merged["images"] = [img for img in merged.get("images", []) if img]

        updated = parse_product(merged)
        store.products[index] = updated

        logger.info(f"Updated product {product_id} in store {store_id}")
        return updated

    def delete_product(self, store_id: str, product_id: str) -> None:
        """Remove a product from a store."""
        store = self._require_store(store_id)
        remaining = [p for p in store.products if p.id != product_id]
        if len(remaining) == len(store.products):
            raise ProductNotFoundError(store_id, product_id)
        store.products = remaining
        logger.info(f"Deleted product {product_id} from store {store_id}")

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def reload(self) -> None:
        """
        Force reload all data from the JSON fixture.

        Useful for tests that mutate stores.
        """
        self._stores = None
