"""
FastAPI application for the storefront builder.

This application provides:
1. Mock merchant authentication (/auth/...)
2. Store lookup (/stores/...)
3. The merchant dashboard: overview, product list and product form (/dashboard/...)
4. The public storefront page (/store/{store_ref})

Run with:
    uv run uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from shop.catalog import CatalogQuery, ProductCatalogView, SortDirection, VisibilityFilter
from shop.config import LOG_DATE_FORMAT, LOG_FORMAT, get_settings
from shop.dashboard import DashboardOverview, TimeRange, build_overview
from shop.data_store import DataStore, ProductNotFoundError
from shop.models import DigitalProductType, Product, Store, StoreType, User
from shop.product_form import (
    FormValidationError,
    ProductFormReconciler,
    ProductFormState,
    format_placeholder,
)
from shop.session import NotAuthenticatedError, Session
from shop.storefront import (
    PurchaseAction,
    StorefrontPage,
    can_purchase,
    excerpt,
    purchase_action,
    storefront_path,
)

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format=LOG_FORMAT,
    datefmt=LOG_DATE_FORMAT,
)

logger = logging.getLogger("api")


# =============================================================================
# Request / response models
# =============================================================================

class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class OtpRequest(BaseModel):
    phone: str


class StoreSummary(BaseModel):
    """Public header of a store."""
    id: str
    slug: str
    name: str
    slogan: str
    description: str
    type: StoreType
    accent_color: str
    logo: Optional[str] = None
    visit_count: int
    product_count: int
    url: str

    @classmethod
    def from_store(cls, store: Store) -> "StoreSummary":
        return cls(
            id=store.id,
            slug=store.slug,
            name=store.name,
            slogan=store.slogan,
            description=store.description,
            type=store.type,
            accent_color=store.accent_color,
            logo=store.logo,
            visit_count=store.visit_count,
            product_count=len(store.products),
            url=storefront_path(store),
        )


class CatalogResponse(BaseModel):
    """Dashboard product list."""
    store_id: str
    query: CatalogQuery
    count: int
    is_filtered: bool
    products: list[Product]


class ProductFormFields(BaseModel):
    """Raw form fields, as typed by the merchant."""
    name: str = ""
    price: str = ""
    description: str = ""
    category: str = ""
    tags: str = ""
    is_digital: bool = False
    in_stock: str = ""
    is_visible: bool = True
    images: list[str] = Field(default_factory=lambda: [""])
    shipping_from: str = ""
    delivery_time: str = ""
    download_link: str = ""
    service_type: str = ""
    digital_product_type: DigitalProductType = DigitalProductType.PDF
    file_size: str = ""
    duration: str = ""
    format: str = ""


class ProductFormResponse(BaseModel):
    store_id: str
    product_id: Optional[str] = None
    is_edit: bool
    fields: ProductFormFields
    shows_duration: bool
    format_placeholder: str


class SubmitResponse(BaseModel):
    product: Product
    redirect_to: str


class ProductCard(BaseModel):
    """A product tile on the storefront grid."""
    id: str
    name: str
    price: float
    excerpt: str
    image: Optional[str] = None
    is_digital: bool
    is_out_of_stock: bool
    purchase_action: PurchaseAction
    can_purchase: bool
    url: str


class ProductDetail(BaseModel):
    """The open product modal with its carousel position."""
    product: Product
    image_index: int
    current_image: Optional[str] = None
    image_count: int
    can_go_prev: bool
    can_go_next: bool
    purchase_action: PurchaseAction
    can_purchase: bool


class StorefrontResponse(BaseModel):
    store: StoreSummary
    url: str
    share_url: str
    products: list[ProductCard]
    detail: Optional[ProductDetail] = None


# =============================================================================
# Application lifespan and dependencies
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the data store and the merchant session, close them on shutdown."""
    settings = get_settings()
    app.state.data_store = DataStore(data_dir=settings.data_dir)
    app.state.session = Session(settings.session_file).open()
    logger.info("Starting Storefront Builder API")
    yield
    app.state.session.close()
    logger.info("Shutting down")


app = FastAPI(
    title="Storefront Builder",
    description="""
    Multi-tenant storefront builder: merchants manage a store and its
    products, customers browse the public storefront.

    ## Endpoints

    - `/auth/*` - Mock merchant sign-in
    - `/stores/*` - Store lookup by ID or slug
    - `/dashboard/*` - Overview, product list and product form (signed-in owner)
    - `/store/{store_ref}` - Public storefront, `?product=<id>` opens a product
    """,
    version="1.0.0",
    lifespan=lifespan,
)


def get_store(request: Request) -> DataStore:
    """Data store opened by the lifespan."""
    return request.app.state.data_store


def get_session(request: Request) -> Session:
    """Merchant session opened by the lifespan."""
    return request.app.state.session


def current_user(session: Session = Depends(get_session)) -> User:
    try:
        return session.require_user()
    except NotAuthenticatedError:
        raise HTTPException(status_code=401, detail="Sign in required")


def managed_store(
    store_id: str,
    user: User = Depends(current_user),
    data_store: DataStore = Depends(get_store),
) -> Store:
    """A store the signed-in merchant owns."""
    store = data_store.get_store(store_id)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Store not found: {store_id}")
    if store.owner_id != user.id:
        logger.warning(f"User {user.id} denied access to store {store_id}")
        raise HTTPException(status_code=403, detail="You do not manage this store")
    return store


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "storefront-builder"}


# =============================================================================
# Authentication
# =============================================================================

@app.post("/auth/login", response_model=User, tags=["Auth"])
def login(request: LoginRequest, session: Session = Depends(get_session)):
    return session.login(request.email, request.password)


@app.post("/auth/register", response_model=User, tags=["Auth"])
def register(request: RegisterRequest, session: Session = Depends(get_session)):
    return session.register(request.name, request.email, request.password)


@app.post("/auth/google", response_model=User, tags=["Auth"])
def login_with_google(session: Session = Depends(get_session)):
    return session.login_with_google()


@app.post("/auth/otp", response_model=User, tags=["Auth"])
def login_with_otp(request: OtpRequest, session: Session = Depends(get_session)):
    return session.login_with_otp(request.phone)


@app.post("/auth/logout", tags=["Auth"])
def logout(session: Session = Depends(get_session)):
    session.logout()
    return {"authenticated": False}


@app.get("/auth/me", response_model=User, tags=["Auth"])
def me(user: User = Depends(current_user)):
    return user


# =============================================================================
# Stores
# =============================================================================

@app.get("/stores", response_model=list[StoreSummary], tags=["Stores"])
def list_stores(data_store: DataStore = Depends(get_store)):
    """Get all stores."""
    return [StoreSummary.from_store(s) for s in data_store.list_stores()]


@app.get("/stores/{store_ref}", response_model=StoreSummary, tags=["Stores"])
def get_store_summary(store_ref: str, data_store: DataStore = Depends(get_store)):
    """Get a store by ID or slug."""
    store = data_store.resolve_store(store_ref)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Store not found: {store_ref}")
    return StoreSummary.from_store(store)


# =============================================================================
# Dashboard
# =============================================================================

@app.get("/dashboard", response_model=DashboardOverview, tags=["Dashboard"])
def dashboard_overview(
    time_range: TimeRange = TimeRange.MONTH,
    user: User = Depends(current_user),
    data_store: DataStore = Depends(get_store),
):
    """Overview of the signed-in merchant's store."""
    stores = data_store.get_stores_by_owner(user.id)
    if not stores:
        raise HTTPException(status_code=404, detail="No store yet, create one first")
    return build_overview(stores[0], time_range)


@app.get(
    "/dashboard/stores/{store_id}/products",
    response_model=CatalogResponse,
    tags=["Dashboard"],
)
def list_products(
    search: str = "",
    visibility: VisibilityFilter = VisibilityFilter.ANY,
    sort: str = "created_at",
    direction: SortDirection = SortDirection.DESC,
    store: Store = Depends(managed_store),
):
    """
    Filtered, sorted product list of a store.

    Search matches name, description and tags, case-insensitively.
    """
    try:
        query = CatalogQuery(
            search_term=search,
            visibility=visibility,
            sort_field=sort,
            sort_direction=direction,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    view = ProductCatalogView(store.products, query=query)
    return CatalogResponse(
        store_id=store.id,
        query=view.query,
        count=view.count,
        is_filtered=view.is_filtered,
        products=view.products,
    )


@app.get(
    "/dashboard/stores/{store_id}/products/form",
    response_model=ProductFormResponse,
    tags=["Dashboard"],
)
def product_form(
    product_id: Optional[str] = None,
    store: Store = Depends(managed_store),
    data_store: DataStore = Depends(get_store),
):
    """Initial state of the add/edit product form."""
    if product_id and store.get_product(product_id) is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")

    reconciler = ProductFormReconciler(data_store, store.id, product_id)
    state = reconciler.load()
    return ProductFormResponse(
        store_id=store.id,
        product_id=product_id,
        is_edit=reconciler.is_edit,
        fields=ProductFormFields(**vars(state)),
        shows_duration=state.shows_duration,
        format_placeholder=format_placeholder(state.digital_product_type),
    )


def _submit_form(
    data_store: DataStore,
    store: Store,
    product_id: Optional[str],
    fields: ProductFormFields,
) -> SubmitResponse:
    reconciler = ProductFormReconciler(data_store, store.id, product_id)
    state = ProductFormState(**fields.model_dump())
    try:
        result = reconciler.submit(state)
    except FormValidationError as e:
        raise HTTPException(status_code=422, detail={"errors": e.errors})

    if not result.success:
        raise HTTPException(status_code=500, detail=result.error)
    return SubmitResponse(product=result.product, redirect_to=result.redirect_to)


@app.post(
    "/dashboard/stores/{store_id}/products",
    response_model=SubmitResponse,
    status_code=201,
    tags=["Dashboard"],
)
def create_product(
    fields: ProductFormFields,
    store: Store = Depends(managed_store),
    data_store: DataStore = Depends(get_store),
):
    """Submit the product form in create mode."""
    return _submit_form(data_store, store, None, fields)


@app.put(
    "/dashboard/stores/{store_id}/products/{product_id}",
    response_model=SubmitResponse,
    tags=["Dashboard"],
)
def update_product(
    product_id: str,
    fields: ProductFormFields,
    store: Store = Depends(managed_store),
    data_store: DataStore = Depends(get_store),
):
    """Submit the product form in edit mode."""
    if store.get_product(product_id) is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")
    return _submit_form(data_store, store, product_id, fields)


@app.delete("/dashboard/stores/{store_id}/products/{product_id}", tags=["Dashboard"])
def delete_product(
    product_id: str,
    confirm: bool = False,
    store: Store = Depends(managed_store),
    data_store: DataStore = Depends(get_store),
):
    """Delete a product. Requires ``confirm=true``."""
    view = ProductCatalogView.for_store(data_store, store.id)
    try:
        deleted = view.delete_product(product_id, confirmed=confirm)
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")

    if not deleted:
        raise HTTPException(status_code=400, detail="Deletion must be confirmed")
    return {"deleted": product_id, "remaining": view.count}


# =============================================================================
# Public storefront
# =============================================================================

def _product_card(store: Store, product: Product) -> ProductCard:
    return ProductCard(
        id=product.id,
        name=product.name,
        price=product.price,
        excerpt=excerpt(product.description),
        image=product.primary_image,
        is_digital=product.is_digital,
        is_out_of_stock=product.is_out_of_stock,
        purchase_action=purchase_action(product),
        can_purchase=can_purchase(product),
        url=storefront_path(store, product.id),
    )


@app.get("/store/{store_ref}", response_model=StorefrontResponse, tags=["Storefront"])
def storefront(
    store_ref: str,
    product: Optional[str] = None,
    image: int = 0,
    data_store: DataStore = Depends(get_store),
):
    """
    Public storefront page.

    ``product`` opens that product's detail view; ``image`` moves its
    carousel (clamped to the available images).
    """
    store = data_store.resolve_store(store_ref)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Store not found: {store_ref}")

    page = StorefrontPage(store, url=storefront_path(store, product))

    detail = None
    if page.is_detail_open:
        page.select_image(image)
        selected = page.selected_product
        detail = ProductDetail(
            product=selected,
            image_index=page.image_index,
            current_image=page.current_image,
            image_count=len(page.images),
            can_go_prev=page.can_go_prev,
            can_go_next=page.can_go_next,
            purchase_action=purchase_action(selected),
            can_purchase=can_purchase(selected),
        )

    return StorefrontResponse(
        store=StoreSummary.from_store(store),
        url=page.url,
        share_url=page.share_url(get_settings().public_base_url),
        products=[_product_card(store, p) for p in page.products],
        detail=detail,
    )
