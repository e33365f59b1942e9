"""
Product catalog view-model for the merchant dashboard.

Derives a filtered, sorted and searchable view of a store's products.
The view is recomputed synchronously whenever one of its inputs changes
and is never persisted.

Ordering rules:
- Numbers and timestamps compare numerically
- Everything else compares as locale-aware text: accents and case are
  ignored first, the exact text breaks ties
- Missing values sort before present ones
- The product ID is the last tie-breaker, so the order is total and the
  descending view is exactly the ascending view reversed
"""

import logging
import unicodedata
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field, field_validator

from shop.data_store import DataStore
from shop.models import DigitalProduct, PhysicalProduct, Product

logger = logging.getLogger("catalog")

# Every attribute either product variant carries
SORTABLE_FIELDS = frozenset(PhysicalProduct.model_fields) | frozenset(DigitalProduct.model_fields)


class VisibilityFilter(str, Enum):
    """Dashboard visibility filter. ANY shows published and unpublished."""
    ANY = "any"
    VISIBLE = "visible"
    HIDDEN = "hidden"

    def cycle(self) -> "VisibilityFilter":
        """Next state of the filter button: any -> visible -> hidden -> any."""
        order = [VisibilityFilter.ANY, VisibilityFilter.VISIBLE, VisibilityFilter.HIDDEN]
        return order[(order.index(self) + 1) % len(order)]

    def matches(self, product: Product) -> bool:
        if self is VisibilityFilter.VISIBLE:
            return product.is_visible
        if self is VisibilityFilter.HIDDEN:
            return not product.is_visible
        return True


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class CatalogQuery(BaseModel):
    """
    Inputs of the catalog view.

    Defaults match the dashboard's first render: everything, newest first.
    """
    search_term: str = Field(default="", description="Case-insensitive substring")
    visibility: VisibilityFilter = Field(default=VisibilityFilter.ANY)
    sort_field: str = Field(default="created_at")
    sort_direction: SortDirection = Field(default=SortDirection.DESC)

    @field_validator("sort_field")
    @classmethod
    def _known_field(cls, value: str) -> str:
        if value not in SORTABLE_FIELDS:
            raise ValueError(f"Unknown sort field: {value}")
        return value

    def toggle_sort(self, field: str) -> "CatalogQuery":
        """
        Sort by a column header.

        Clicking the active column flips the direction; any other column
        starts ascending.
        """
        if field == self.sort_field:
            return self.model_copy(update={"sort_direction": self.sort_direction.flipped()})
        return self.model_validate(
            {**self.model_dump(), "sort_field": field, "sort_direction": SortDirection.ASC}
        )

    @property
    def is_filtered(self) -> bool:
        """True when search or visibility narrows the collection."""
        return bool(self.search_term) or self.visibility is not VisibilityFilter.ANY


# =============================================================================
# Filtering and ordering
# =============================================================================

def matches_search(product: Product, term: str) -> bool:
    """Case-insensitive substring match against name, description or any tag."""
    if not term:
        return True
    needle = term.casefold()
    return (
        needle in product.name.casefold()
        or needle in (product.description or "").casefold()
        or any(needle in tag.casefold() for tag in product.tags)
    )


def _numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        return value.timestamp()
    return None


def _as_text(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_as_text(v) for v in value)
    return str(value)


def locale_key(text: str) -> tuple[str, str]:
    """Collation key: accent- and case-insensitive, exact text as tie-break."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def sort_products(
    products: Iterable[Product],
    field: str,
    direction: SortDirection = SortDirection.ASC,
) -> list[Product]:
    """
    Order products by one attribute.

    The comparison mode is picked once for the whole collection: numeric
    when every present value is a number or timestamp, text otherwise.
    """
    items = list(products)
    present = [getattr(p, field, None) for p in items]
    present = [v for v in present if not _is_missing(v)]
    numeric = all(_numeric(v) is not None for v in present)

    def key(product: Product) -> tuple:
        value = getattr(product, field, None)
        if _is_missing(value):
            return (0, 0.0 if numeric else ("", ""), product.id)
        if numeric:
            return (1, _numeric(value), product.id)
        return (1, locale_key(_as_text(value)), product.id)

    ordered = sorted(items, key=key)
    if SortDirection(direction) is SortDirection.DESC:
        ordered.reverse()
    return ordered


def filter_products(products: Iterable[Product], query: CatalogQuery) -> list[Product]:
    """Apply search, visibility filter and sort to a product collection."""
    selected = [
        p for p in products
        if matches_search(p, query.search_term) and query.visibility.matches(p)
    ]
    return sort_products(selected, query.sort_field, query.sort_direction)


# =============================================================================
# View-model
# =============================================================================

class ProductCatalogView:
    """
    Live catalog view for one store.

    Every setter recomputes ``products`` before returning, so readers never
    see a stale view.

    Example usage:
        view = ProductCatalogView.for_store(data_store, "store-001")
        view.set_visibility(VisibilityFilter.VISIBLE)
        view.sort_by("price")
        names = [p.name for p in view.products]
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        query: Optional[CatalogQuery] = None,
        data_store: Optional[DataStore] = None,
        store_id: Optional[str] = None,
    ):
        self.data_store = data_store
        self.store_id = store_id
        self.query = query or CatalogQuery()
        self._source: list[Product] = list(products)
        self.products: list[Product] = []
        self._recompute()

    @classmethod
    def for_store(
        cls,
        data_store: DataStore,
        store_id: str,
        query: Optional[CatalogQuery] = None,
    ) -> Optional["ProductCatalogView"]:
        """Build the view over a store's products, or None for an unknown store."""
        store = data_store.get_store(store_id)
        if store is None:
            return None
        return cls(store.products, query=query, data_store=data_store, store_id=store_id)

    def _recompute(self) -> None:
        self.products = filter_products(self._source, self.query)

    # Inputs

    def set_products(self, products: Iterable[Product]) -> None:
        self._source = list(products)
        self._recompute()

    def set_query(self, query: CatalogQuery) -> None:
        self.query = query
        self._recompute()

    def set_search_term(self, term: str) -> None:
        self.set_query(self.query.model_copy(update={"search_term": term}))

    def set_visibility(self, visibility: VisibilityFilter) -> None:
        self.set_query(self.query.model_copy(update={"visibility": VisibilityFilter(visibility)}))

    def cycle_visibility(self) -> VisibilityFilter:
        self.set_visibility(self.query.visibility.cycle())
        return self.query.visibility

    def sort_by(self, field: str) -> None:
        self.set_query(self.query.toggle_sort(field))

    # Outputs

    @property
    def count(self) -> int:
        return len(self.products)

    @property
    def is_filtered(self) -> bool:
        return self.query.is_filtered

    def delete_product(self, product_id: str, confirmed: bool = False) -> bool:
        """
        Delete a product after explicit confirmation.

        Returns False without touching the store when not confirmed.
        """
        if not confirmed:
            logger.info(f"Deletion of {product_id} not confirmed, skipping")
            return False
        if self.data_store is None or self.store_id is None:
            raise RuntimeError("Catalog view is not bound to a store")

        self.data_store.delete_product(self.store_id, product_id)
        self.set_products(self.data_store.get_store(self.store_id).products)
        return True
