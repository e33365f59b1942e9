"""
Dashboard overview for a merchant's store.

Summarizes the store the merchant is managing: headline stats computed
from its catalog, the latest products and a link to the public page.
"""

from enum import Enum

from pydantic import BaseModel, Field

from shop.models import Product, Store
from shop.storefront import storefront_path

RECENT_PRODUCTS_LIMIT = 5


class TimeRange(str, Enum):
    """Period selector of the overview. Only echoed back for now."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class StoreStats(BaseModel):
    product_count: int = Field(..., ge=0)
    published_count: int = Field(..., ge=0)
    out_of_stock_count: int = Field(..., ge=0)
    digital_count: int = Field(..., ge=0)
    visit_count: int = Field(..., ge=0)


class DashboardOverview(BaseModel):
    store_id: str
    store_name: str
    storefront_url: str
    time_range: TimeRange
    stats: StoreStats
    recent_products: list[Product] = Field(default_factory=list)


def compute_stats(store: Store) -> StoreStats:
    products = store.products
    return StoreStats(
        product_count=len(products),
        published_count=sum(1 for p in products if p.is_visible),
        out_of_stock_count=sum(1 for p in products if p.is_out_of_stock),
        digital_count=sum(1 for p in products if p.is_digital),
        visit_count=store.visit_count,
    )


def build_overview(store: Store, time_range: TimeRange = TimeRange.MONTH) -> DashboardOverview:
    """Overview of one store. Recent products are the first five in catalog order."""
    return DashboardOverview(
        store_id=store.id,
        store_name=store.name,
        storefront_url=storefront_path(store),
        time_range=time_range,
        stats=compute_stats(store),
        recent_products=store.products[:RECENT_PRODUCTS_LIMIT],
    )
