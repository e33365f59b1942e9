"""
Product form reconciler.

Maps one product to editable form fields and back. The form keeps every
field as raw text, the way a merchant typed it; ``to_payload`` turns that
into the partial product the store provider accepts.

Design decisions:
- Required-field validation happens before any write; nothing is sent
  to the store provider when it fails
- Only the field set of the current branch (physical or digital) goes
  into the payload
- Persistence failures are logged and reported as a generic failure,
  there is no retry
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from shop.data_store import DataStore, DataStoreError
from shop.models import (
    TIMED_PRODUCT_TYPES,
    DigitalProductType,
    Product,
    Store,
    StoreType,
)

logger = logging.getLogger("product_form")

# Where the dashboard goes after a successful save
PRODUCTS_PAGE = "/dashboard/products"

GENERIC_FAILURE = "Failed to save product"

FORMAT_PLACEHOLDERS = {
    DigitalProductType.PDF: "Ex: PDF",
    DigitalProductType.VIDEO: "Ex: MP4, 1080p",
    DigitalProductType.AUDIO: "Ex: MP3, 320kbps",
    DigitalProductType.EBOOK: "Ex: EPUB, MOBI",
    DigitalProductType.OTHER: "Ex: ZIP, RAR",
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def format_placeholder(kind: DigitalProductType) -> str:
    """Hint shown in the format field for a digital sub-kind."""
    return FORMAT_PLACEHOLDERS[DigitalProductType(kind)]


def parse_stock(raw: str) -> int:
    """
    Read a stock quantity typed by the merchant.

    Takes the leading integer ("12 units" -> 12, "7.9" -> 7) and defaults
    to 0 when there is none.
    """
    match = _LEADING_INT.match(raw or "")
    return int(match.group(1)) if match else 0


def parse_price(raw: str) -> Optional[float]:
    """Read a price, or None when the text is not a number."""
    try:
        value = float((raw or "").strip())
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def split_tags(raw: str) -> list[str]:
    """Comma-separated tags, trimmed, empties removed, order kept."""
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


class FormValidationError(Exception):
    """Raised when required fields are missing or malformed."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("Invalid product form: " + ", ".join(sorted(errors)))
        self.errors = errors


@dataclass
class ProductFormState:
    """
    Editable state of the product form.

    Numeric fields stay text until submission. ``images`` always has at
    least one slot; the first slot is the primary image.
    """
    name: str = ""
    price: str = ""
    description: str = ""
    category: str = ""
    tags: str = ""
    is_digital: bool = False
    in_stock: str = ""
    is_visible: bool = True
    images: list[str] = field(default_factory=lambda: [""])
    shipping_from: str = ""
    delivery_time: str = ""
    download_link: str = ""
    service_type: str = ""
    digital_product_type: DigitalProductType = DigitalProductType.PDF
    file_size: str = ""
    duration: str = ""
    format: str = ""

    @classmethod
    def defaults(cls, store: Optional[Store] = None) -> "ProductFormState":
        """Blank form; digital stores start with the digital flag on."""
        state = cls()
        if store is not None and store.type == StoreType.DIGITAL:
            state.is_digital = True
        return state

    @classmethod
    def from_product(cls, product: Product) -> "ProductFormState":
        """Load an existing product into editable fields."""
        state = cls(
            name=product.name,
            price=_price_text(product.price),
            description=product.description,
            category=product.category or "",
            tags=", ".join(product.tags),
            is_digital=product.is_digital,
            is_visible=product.is_visible,
            images=list(product.images) or [""],
        )
        if product.is_digital:
            state.download_link = product.download_link or ""
            state.service_type = product.service_type or ""
            state.digital_product_type = DigitalProductType(product.digital_product_type)
            state.file_size = product.file_size or ""
            state.duration = product.duration or ""
            state.format = product.format or ""
        else:
            state.in_stock = str(product.in_stock)
            state.shipping_from = product.shipping_from or ""
            state.delivery_time = product.delivery_time or ""
        return state

    # Image slots

    def add_image_slot(self) -> None:
        self.images.append("")

    def set_image(self, index: int, url: str) -> None:
        self.images[index] = url

    def remove_image_slot(self, index: int) -> None:
        """Remove an extra image slot. The primary slot stays."""
        if index == 0:
            raise ValueError("The primary image slot cannot be removed")
        del self.images[index]

    @property
    def shows_duration(self) -> bool:
        return self.is_digital and DigitalProductType(self.digital_product_type) in TIMED_PRODUCT_TYPES

    # Submission

    def validate(self) -> dict[str, str]:
        """Return field -> message for every missing or malformed field."""
        errors: dict[str, str] = {}
        if not self.name.strip():
            errors["name"] = "Name is required"
        if not self.price.strip():
            errors["price"] = "Price is required"
        else:
            price = parse_price(self.price)
            if price is None:
                errors["price"] = "Price must be a number"
            elif price < 0:
                errors["price"] = "Price cannot be negative"
        if not self.description.strip():
            errors["description"] = "Description is required"
        if not any(img.strip() for img in self.images):
            errors["images"] = "At least one image is required"
        if self.is_digital and not self.download_link.strip():
            errors["download_link"] = "Download link is required for digital products"
        if not self.is_digital and parse_stock(self.in_stock) < 0:
            errors["in_stock"] = "Stock cannot be negative"
        return errors

    def to_payload(self) -> dict[str, Any]:
        """
        Build the partial product sent to the store provider.

        Only the branch selected by ``is_digital`` is included.
        """
        payload: dict[str, Any] = {
            "name": self.name.strip(),
            "price": parse_price(self.price),
            "description": self.description,
            "category": self.category.strip() or None,
            "tags": split_tags(self.tags),
            "is_digital": self.is_digital,
            "is_visible": self.is_visible,
            "images": [img.strip() for img in self.images if img.strip()],
        }
        if self.is_digital:
            payload.update(
                download_link=self.download_link.strip(),
                service_type=self.service_type or None,
                digital_product_type=DigitalProductType(self.digital_product_type).value,
                file_size=self.file_size or None,
                # Only video and audio keep a duration, other sub-kinds clear it
                duration=(self.duration or None) if self.shows_duration else None,
                format=self.format or None,
            )
        else:
            payload.update(
                in_stock=parse_stock(self.in_stock),
                shipping_from=self.shipping_from or None,
                delivery_time=self.delivery_time or None,
            )
        return payload


def _price_text(price: float) -> str:
    return str(int(price)) if float(price).is_integer() else str(price)


@dataclass
class SubmitResult:
    """Outcome of a form submission."""
    success: bool
    product: Optional[Product] = None
    redirect_to: Optional[str] = None
    error: Optional[str] = None


class ProductFormReconciler:
    """
    Drives the add/edit product form for one store.

    Given a product ID the form edits that product, otherwise it creates a
    new one. Persistence is delegated to the store provider.
    """

    def __init__(
        self,
        data_store: DataStore,
        store_id: str,
        product_id: Optional[str] = None,
    ):
        self.data_store = data_store
        self.store_id = store_id
        self.product_id = product_id
        self.is_loading = False

    @property
    def is_edit(self) -> bool:
        return self.product_id is not None

    def load(self) -> ProductFormState:
        """
        Initial form state.

        Starts from the store's defaults; when editing, the product's
        fields replace them. An unknown product ID leaves the defaults.
        """
        store = self.data_store.get_store(self.store_id)
        state = ProductFormState.defaults(store)
        if self.product_id and store is not None:
            product = store.get_product(self.product_id)
            if product is not None:
                state = ProductFormState.from_product(product)
            else:
                logger.warning(f"Product {self.product_id} not found in store {self.store_id}")
        return state

    def submit(self, state: ProductFormState) -> SubmitResult:
        """
        Validate and save the form.

        Raises FormValidationError before touching the store when a
        required field is missing. A failed write is logged and returned
        as a generic failure.
        """
        errors = state.validate()
        if errors:
            raise FormValidationError(errors)

        payload = state.to_payload()
        self.is_loading = True
        try:
            if self.product_id:
                product = self.data_store.update_product(self.store_id, self.product_id, payload)
            else:
                product = self.data_store.add_product(self.store_id, payload)
        except (DataStoreError, ValidationError):
            logger.exception("Error saving product")
            return SubmitResult(success=False, error=GENERIC_FAILURE)
        finally:
            self.is_loading = False

        return SubmitResult(success=True, product=product, redirect_to=PRODUCTS_PAGE)
