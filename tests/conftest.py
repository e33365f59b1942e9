"""
Shared pytest fixtures for the storefront builder tests.

These fixtures provide consistent test data and reset state between tests.
"""

import pytest
from datetime import datetime
from pathlib import Path

from shop.data_store import DataStore
from shop.models import DigitalProduct, PhysicalProduct
from shop.session import Session


@pytest.fixture
def data_dir() -> Path:
    """Path to the fixture data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    """
    Fresh DataStore instance for each test.

    Uses the real JSON fixtures but creates a new instance
    so tests don't interfere with each other.
    """
    return DataStore(data_dir=data_dir)


@pytest.fixture
def session(tmp_path: Path) -> Session:
    """Open session backed by a throwaway session file."""
    return Session(tmp_path / "session.json").open()


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def fashion_store_id() -> str:
    """Mode Abidjan: physical store owned by user 123, five products (one hidden, one digital)."""
    return "store-001"


@pytest.fixture
def training_store_id() -> str:
    """Formations Pro: digital store owned by user 456, two products (one hidden)."""
    return "store-002"


@pytest.fixture
def grocery_store_id() -> str:
    """Épicerie Fine: physical store owned by user 999, no products."""
    return "store-003"


# =============================================================================
# Product Fixtures
# =============================================================================

@pytest.fixture
def dress_product_id() -> str:
    """Robe wax: physical, visible, 5 in stock, three images."""
    return "prod-001"


@pytest.fixture
def bag_product_id() -> str:
    """Sac à main: physical, hidden, out of stock."""
    return "prod-002"


@pytest.fixture
def guide_product_id() -> str:
    """Guide de style: digital ebook in the fashion store."""
    return "prod-004"


@pytest.fixture
def course_product_id() -> str:
    """Formation Marketing Digital: digital video with a duration."""
    return "prod-101"


@pytest.fixture
def sample_products() -> list:
    """Small mixed collection built in code, independent of the fixture file."""
    return [
        PhysicalProduct(
            id="p-1",
            name="Robe",
            price=10000,
            description="Robe en coton",
            tags=["mode", "Été"],
            is_visible=True,
            in_stock=3,
            created_at=datetime(2024, 1, 2),
        ),
        PhysicalProduct(
            id="p-2",
            name="Sac",
            price=5000,
            description="Sac en cuir",
            tags=["accessoires"],
            is_visible=False,
            in_stock=0,
            created_at=datetime(2024, 1, 1),
        ),
        DigitalProduct(
            id="p-3",
            name="écharpe tutoriel",
            price=2000,
            description="Vidéo: nouer une écharpe",
            tags=["video"],
            is_visible=True,
            digital_product_type="video",
            download_link="https://files.example.com/tuto.mp4",
            created_at=datetime(2024, 1, 3),
        ),
        PhysicalProduct(
            id="p-4",
            name="Chapeau",
            price=5000,
            description="Chapeau de paille",
            category="Accessoires",
            tags=[],
            is_visible=True,
            in_stock=8,
            created_at=datetime(2024, 1, 4),
        ),
    ]
