"""
Domain models for the storefront builder.

A merchant owns a Store; a Store holds an ordered list of Products that
customers browse on the public storefront.

Design decisions:
- Using Pydantic for validation and serialization
- Product is a tagged union (discriminator ``kind``) so physical-only and
  digital-only fields never coexist on the same record
- Field names are snake_case; the JSON fixtures use the same names
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# =============================================================================
# Enums
# =============================================================================

class StoreType(str, Enum):
    """What a store mainly sells. Seeds the product form's digital flag."""
    PHYSICAL = "physical"
    DIGITAL = "digital"


class DigitalProductType(str, Enum):
    """
    Digital product sub-kind.
    Controls which optional metadata fields apply (duration is only
    meaningful for video and audio).
    """
    PDF = "pdf"
    VIDEO = "video"
    AUDIO = "audio"
    EBOOK = "ebook"
    OTHER = "other"


# Sub-kinds that carry a playback duration
TIMED_PRODUCT_TYPES = {DigitalProductType.VIDEO, DigitalProductType.AUDIO}


# =============================================================================
# Products
# =============================================================================

class ProductBase(BaseModel):
    """
    Fields shared by both product variants.

    The first image is the primary one, shown on listing cards and
    dashboard rows.
    """
    id: str = Field(..., description="Unique product identifier")
    name: str = Field(..., min_length=1, description="Product display name")
    price: float = Field(..., ge=0, description="Current price")
    description: str = Field(default="", description="Long description")
    category: Optional[str] = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    is_visible: bool = Field(default=True, description="Published on the storefront")
    images: list[str] = Field(default_factory=list, description="Image URLs, primary first")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    @property
    def primary_image(self) -> Optional[str]:
        """The image shown on cards, or None when the product has none."""
        return self.images[0] if self.images else None


class PhysicalProduct(ProductBase):
    """A product that ships. Tracks stock and shipping details."""
    kind: Literal["physical"] = "physical"
    in_stock: int = Field(default=0, ge=0, description="Units available")
    shipping_from: Optional[str] = Field(default=None)
    delivery_time: Optional[str] = Field(default=None)

    @property
    def is_digital(self) -> bool:
        return False

    @property
    def is_out_of_stock(self) -> bool:
        return self.in_stock <= 0


class DigitalProduct(ProductBase):
    """A downloadable product or online service."""
    kind: Literal["digital"] = "digital"
    download_link: Optional[str] = Field(default=None)
    service_type: Optional[str] = Field(default=None)
    digital_product_type: DigitalProductType = Field(default=DigitalProductType.PDF)
    file_size: Optional[str] = Field(default=None)
    duration: Optional[str] = Field(default=None)
    format: Optional[str] = Field(default=None)

    @property
    def is_digital(self) -> bool:
        return True

    @property
    def is_out_of_stock(self) -> bool:
        # Downloads never run out
        return False


Product = Annotated[Union[PhysicalProduct, DigitalProduct], Field(discriminator="kind")]

_product_adapter: TypeAdapter = TypeAdapter(Product)

# Fields owned by each variant; the other variant's fields are dropped on write
PHYSICAL_FIELDS = ("in_stock", "shipping_from", "delivery_time")
DIGITAL_FIELDS = (
    "download_link",
    "service_type",
    "digital_product_type",
    "file_size",
    "duration",
    "format",
)


def parse_product(data: dict[str, Any]) -> Product:
    """
    Validate a raw mapping into the matching product variant.

    Accepts either a ``kind`` tag or the ``is_digital`` flag used by form
    payloads; ``is_digital`` wins when both are present.
    """
    data = dict(data)
    if "is_digital" in data:
        data["kind"] = "digital" if data.pop("is_digital") else "physical"
    data.setdefault("kind", "physical")
    return _product_adapter.validate_python(data)


# =============================================================================
# Stores and users
# =============================================================================

class Store(BaseModel):
    """
    A merchant's catalog and presentation configuration.

    Addressable by ``id`` or by its human-readable ``slug`` (used in
    public storefront URLs).
    """
    id: str = Field(..., description="Unique store identifier")
    slug: str = Field(..., description="Unique human-readable identifier")
    name: str = Field(..., description="Store display name")
    slogan: str = Field(default="")
    description: str = Field(default="")
    type: StoreType = Field(default=StoreType.PHYSICAL)
    accent_color: str = Field(default="#f97316", description="Header and button color")
    logo: Optional[str] = Field(default=None, description="Logo URL")
    visit_count: int = Field(default=0, ge=0)
    owner_id: Optional[str] = Field(default=None, description="User who manages the store")
    products: list[Product] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    def get_product(self, product_id: str) -> Optional[Product]:
        """Find one of this store's products by ID."""
        return next((p for p in self.products if p.id == product_id), None)

    def visible_products(self) -> list[Product]:
        """Products published on the storefront, in catalog order."""
        return [p for p in self.products if p.is_visible]


class User(BaseModel):
    """A signed-in merchant."""
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
