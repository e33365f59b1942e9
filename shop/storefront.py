"""
Public storefront page state.

Read-only presentation of a store plus a product detail view with an
image carousel. The open product lives in the ``product`` query parameter
of the page URL, so a storefront link can point straight at a product.

Design decisions:
- Opening or closing the detail view pushes a history entry without a
  full navigation
- The page listens to back/forward moves and re-derives the detail view
  from the URL, so the address bar and the displayed state never drift
- The carousel index is always clamped to the selected product's images
"""

import logging
from enum import Enum
from typing import Callable, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from shop.data_store import DataStore
from shop.models import Product, Store

logger = logging.getLogger("storefront")

PRODUCT_PARAM = "product"
EXCERPT_LENGTH = 60


# =============================================================================
# URL helpers
# =============================================================================

def get_query_param(url: str, name: str) -> Optional[str]:
    """Value of a query parameter, or None when absent."""
    return dict(parse_qsl(urlsplit(url).query)).get(name)


def set_query_param(url: str, name: str, value: Optional[str]) -> str:
    """Return ``url`` with one query parameter set, or removed when value is None."""
    parts = urlsplit(url)
    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    if value is not None:
        params.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(params)))


def storefront_path(store: Store, product_id: Optional[str] = None) -> str:
    """Public path of a store, optionally pointing at one product."""
    return set_query_param(f"/store/{store.slug}", PRODUCT_PARAM, product_id)


HistoryListener = Callable[[str], None]


class BrowserHistory:
    """
    Session history of the page.

    ``push`` records a new entry without notifying anyone (like
    ``history.pushState``); ``back`` and ``forward`` move through entries
    and notify listeners with the URL they landed on.
    """

    def __init__(self, url: str):
        self._entries: list[str] = [url]
        self._index = 0
        self._listeners: list[HistoryListener] = []

    @property
    def current(self) -> str:
        return self._entries[self._index]

    @property
    def length(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: HistoryListener) -> None:
        self._listeners.append(listener)

    def push(self, url: str) -> None:
        """Add an entry after the current one, dropping any forward entries."""
        del self._entries[self._index + 1:]
        self._entries.append(url)
        self._index += 1

    def back(self) -> Optional[str]:
        if self._index == 0:
            return None
        self._index -= 1
        self._notify()
        return self.current

    def forward(self) -> Optional[str]:
        if self._index == len(self._entries) - 1:
            return None
        self._index += 1
        self._notify()
        return self.current

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.current)


# =============================================================================
# Presentation helpers
# =============================================================================

class PurchaseAction(str, Enum):
    """Call to action on a product: digital goods are bought directly."""
    BUY_NOW = "buy_now"
    ADD_TO_CART = "add_to_cart"


def purchase_action(product: Product) -> PurchaseAction:
    return PurchaseAction.BUY_NOW if product.is_digital else PurchaseAction.ADD_TO_CART


def can_purchase(product: Product) -> bool:
    """Physical products with no stock left cannot be bought."""
    return not product.is_out_of_stock


def excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    """Card teaser: the first ``length`` characters followed by an ellipsis."""
    return f"{text[:length]}..."


# =============================================================================
# Page
# =============================================================================

class StorefrontPage:
    """
    State of one storefront page.

    Example usage:
        page = StorefrontPage.load(data_store, "mode-abidjan", "/store/mode-abidjan?product=prod-001")
        page.is_detail_open   # True, prod-001 is shown
        page.next_image()
        page.close_product()  # URL is back to /store/mode-abidjan
    """

    def __init__(
        self,
        store: Store,
        url: Optional[str] = None,
        history: Optional[BrowserHistory] = None,
    ):
        self.store = store
        self.history = history or BrowserHistory(url or storefront_path(store))
        self.selected_product: Optional[Product] = None
        self.is_detail_open = False
        self.image_index = 0

        self.history.subscribe(self._sync_from_url)
        self._sync_from_url(self.history.current)

    @classmethod
    def load(
        cls,
        data_store: DataStore,
        store_ref: str,
        url: Optional[str] = None,
    ) -> Optional["StorefrontPage"]:
        """
        Open the storefront of a store given by ID or slug.

        Returns None when no store matches.
        """
        store = data_store.resolve_store(store_ref)
        if store is None:
            logger.info(f"Storefront not found: {store_ref}")
            return None
        return cls(store, url=url)

    @property
    def url(self) -> str:
        return self.history.current

    @property
    def products(self) -> list[Product]:
        """Products listed on the page. Unpublished products are hidden."""
        return self.store.visible_products()

    # Detail view

    def _sync_from_url(self, url: str) -> None:
        product_id = get_query_param(url, PRODUCT_PARAM)
        product = self.store.get_product(product_id) if product_id else None
        if product is None:
            if product_id:
                logger.debug(f"Ignoring unknown product in URL: {product_id}")
            self.is_detail_open = False
            return
        if not self.is_detail_open or self.selected_product.id != product.id:
            self.image_index = 0
        self.selected_product = product
        self.is_detail_open = True

    def open_product(self, product_id: str) -> bool:
        """
        Show a product's detail view and record it in the URL.

        The carousel always restarts at the first image. Returns False
        for a product that is not in this store.
        """
        product = self.store.get_product(product_id)
        if product is None:
            return False
        self.selected_product = product
        self.image_index = 0
        self.is_detail_open = True
        self.history.push(set_query_param(self.url, PRODUCT_PARAM, product.id))
        return True

    def close_product(self) -> None:
        """Hide the detail view and drop the product from the URL."""
        self.is_detail_open = False
        self.history.push(set_query_param(self.url, PRODUCT_PARAM, None))

    # Carousel

    @property
    def images(self) -> list[str]:
        return list(self.selected_product.images) if self.selected_product else []

    @property
    def current_image(self) -> Optional[str]:
        images = self.images
        return images[self.image_index] if images else None

    @property
    def can_go_prev(self) -> bool:
        return self.image_index > 0

    @property
    def can_go_next(self) -> bool:
        return self.image_index < len(self.images) - 1

    def next_image(self) -> int:
        if self.can_go_next:
            self.image_index += 1
        return self.image_index

    def prev_image(self) -> int:
        if self.can_go_prev:
            self.image_index -= 1
        return self.image_index

    def select_image(self, index: int) -> int:
        """Jump to a carousel dot, clamped to the available images."""
        last = max(len(self.images) - 1, 0)
        self.image_index = min(max(index, 0), last)
        return self.image_index

    def share_url(self, base_url: str) -> str:
        """Absolute link to the page as currently shown."""
        return base_url.rstrip("/") + self.url
