"""
Products API endpoints - ingredient catalog CRUD
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog.api.auth import get_current_user
from catalog.database import get_db, get_session_factory
from catalog.models.availability import MONTHS
from catalog.models.product import Product, SKU_LENGTH, resolve_owner
from catalog.models.product_pack import MEASUREMENTS
from catalog.models.user import User
from catalog.services.events import event_bus
from catalog.services.policies import authorize
from catalog.services.product_filter import ProductFilter
from catalog.services.product_service import ProductService

router = APIRouter()


# --- Pydantic Schemas ---

class PackIn(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    measurement: str = "kg"
    volume: float = Field(1, gt=0)
    price: float = Field(0, ge=0)
    default: bool = False
    available: bool = True

    @field_validator("measurement")
    @classmethod
    def known_measurement(cls, value: str) -> str:
        value = value.lower()
        if value not in MEASUREMENTS:
            raise ValueError(f"measurement must be one of {MEASUREMENTS}")
        return value


class YieldIn(BaseModel):
    id: Optional[int] = None
    name: str
    value: float = Field(..., ge=0)
    default: bool = False


class SeasonIn(BaseModel):
    month: str
    season_status_id: int

    @field_validator("month")
    @classmethod
    def known_month(cls, value: str) -> str:
        if value not in MONTHS:
            raise ValueError(f"month must be one of {MONTHS}")
        return value


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    url: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=SKU_LENGTH)
    brand_id: Optional[int] = None
    price_avg: Optional[float] = None
    nutrition_id: Optional[int] = None
    density_id: Optional[int] = None
    supplier_id: Optional[int] = None
    food_category_id: Optional[int] = None
    image: Optional[str] = None
    aliases: List[str] = []
    diets: List[int] = []
    yields: List[YieldIn] = []
    packs: List[PackIn] = []
    season: List[SeasonIn] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    url: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=SKU_LENGTH)
    brand_id: Optional[int] = None
    price_avg: Optional[float] = None
    nutrition_id: Optional[int] = None
    density_id: Optional[int] = None
    supplier_id: Optional[int] = None
    food_category_id: Optional[int] = None
    image: Optional[str] = None
    aliases: Optional[List[str]] = None
    diets: Optional[List[int]] = None
    yields: Optional[List[YieldIn]] = None
    packs: Optional[List[PackIn]] = None
    season: Optional[List[SeasonIn]] = None

    # Leaving name out keeps it; sending null would blank a required column
    @field_validator("name")
    @classmethod
    def name_not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("name may not be null")
        return value


class NamedRef(BaseModel):
    id: int
    name: str


class StatusResponse(BaseModel):
    id: int
    status: str
    icon_class: Optional[str] = None


class AvailabilityResponse(BaseModel):
    id: int
    month: str
    season_status_id: int
    status: Optional[StatusResponse] = None


class PreparationResponse(BaseModel):
    id: int
    name: str
    value: float
    default: bool


class PackResponse(BaseModel):
    id: int
    name: Optional[str]
    measurement: str
    volume: float
    price: float
    price_per_kg: Optional[float]
    default: bool
    available: bool


class NutritionInfoResponse(BaseModel):
    index: int
    name: str
    value: float
    unit: str
    percent: Optional[float]


class OwnerResponse(BaseModel):
    type: Optional[str]
    id: Optional[int]
    name: Optional[str] = None


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    url: Optional[str]
    sku: Optional[str]
    price_avg: Optional[float]
    brand_id: Optional[int]
    brand: Optional[NamedRef] = None
    nutrition_id: Optional[int]
    density_id: Optional[int]
    supplier_id: Optional[int]
    supplier: Optional[NamedRef] = None
    food_category_id: Optional[int]
    food_category: Optional[NamedRef] = None
    image: Optional[str] = None
    aliases: List[str] = []
    diets: List[NamedRef] = []
    yields: List[PreparationResponse] = []
    packs: List[PackResponse] = []
    season_availability: List[AvailabilityResponse] = []
    current_month: StatusResponse
    default_waste: float
    default_note: Optional[str]
    nutrition_graph: List[NutritionInfoResponse] = []
    owner: OwnerResponse
    is_editable: bool
    is_deletable: bool
    is_used: Optional[bool] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    deleted_at: Optional[datetime] = None


class PageMeta(BaseModel):
    current_page: int
    from_: Optional[int] = Field(None, serialization_alias="from")
    to: Optional[int]
    per_page: int
    last_page: int
    total: int
    path: str


class PageLinks(BaseModel):
    first: str
    last: str
    prev: Optional[str]
    next: Optional[str]


class ProductListResponse(BaseModel):
    data: List[ProductResponse]
    meta: PageMeta
    links: PageLinks


class SupplierBranch(BaseModel):
    name: str
    supplies: str
    region: Optional[str]
    ingredients: int


class SuppliedByResponse(SupplierBranch):
    branches: List[SupplierBranch] = []


class PackPriceResponse(BaseModel):
    measurement: str
    volume: float
    price: Optional[float]


# --- Helpers ---

def get_product_service(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> ProductService:
    return ProductService(db, bus=event_bus, session_factory=session_factory)


def _ref(obj) -> Optional[NamedRef]:
    return NamedRef(id=obj.id, name=obj.name) if obj is not None else None


async def _build_product_response(
    service: ProductService, product: Product, user: User, detail: bool = True
) -> ProductResponse:
    waste, note = product.default_waste_and_note()
    owner = OwnerResponse(type=product.owner_type, id=product.owner_id)
    is_used = None
    if detail:
        owner_row = await resolve_owner(service.db, product)
        owner.name = getattr(owner_row, "name", None) or getattr(owner_row, "full_name", None)
        is_used = await service.is_used_in_any_recipe(product)

    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        url=product.url,
        sku=product.sku,
        price_avg=product.price_avg,
        brand_id=product.brand_id,
        brand=_ref(product.brand),
        nutrition_id=product.nutrition_id,
        density_id=product.density_id,
        supplier_id=product.supplier_id,
        supplier=_ref(product.supplier),
        food_category_id=product.food_category_id,
        food_category=_ref(product.food_category),
        image=product.image.url if product.image else None,
        aliases=[tag.name for tag in product.tags],
        diets=[_ref(diet) for diet in product.diets],
        yields=[
            PreparationResponse(id=p.id, name=p.name, value=p.value, default=p.default)
            for p in product.preparations
        ],
        packs=[
            PackResponse(
                id=p.id, name=p.name, measurement=p.measurement, volume=p.volume, price=p.price,
                price_per_kg=p.price_per_kg, default=p.default, available=p.available,
            )
            for p in product.packs
        ],
        season_availability=[
            AvailabilityResponse(
                id=a.id,
                month=a.month,
                season_status_id=a.season_status_id,
                status=StatusResponse(**a.status.to_dict()) if a.status else None,
            )
            for a in product.season_availability()
        ],
        current_month=StatusResponse(**product.current_month_status()),
        default_waste=waste,
        default_note=note,
        nutrition_graph=[
            NutritionInfoResponse(index=i.index, name=i.name, value=i.value, unit=i.unit, percent=i.percent)
            for i in product.nutrition_graph(user.display_age_nutrition_graphs)
        ],
        owner=owner,
        is_editable=product.is_editable_by(user),
        is_deletable=product.is_deletable_by(user),
        is_used=is_used,
        created_at=product.created_at,
        updated_at=product.updated_at,
        deleted_at=product.deleted_at,
    )


def _page_url(request: Request, page: int) -> str:
    return str(request.url.include_query_params(page=page))


# --- Endpoints ---

@router.get("/", response_model=ProductListResponse, response_model_by_alias=True)
async def list_products(
    request: Request,
    name: Optional[str] = None,
    order: Optional[str] = Query(None, description="Order by name ASC/DESC"),
    brand: Optional[int] = None,
    company: Optional[int] = Query(None, description="Supplier id"),
    category: Optional[int] = None,
    time: Optional[str] = Query(None, description="Order by creation time ASC/DESC"),
    price: Optional[str] = Query(None, description="Order by average price ASC/DESC"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1),
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """List products, filtered and paginated"""
    authorize(current_user, "list", Product)

    filters = ProductFilter(
        name=name, brand=brand, company=company, category=category, order=order, time=time, price=price,
    )
    result = await service.paginate(filters, page=page, per_page=per_page)

    return ProductListResponse(
        data=[await _build_product_response(service, p, current_user, detail=False) for p in result.items],
        meta=PageMeta(
            current_page=result.page,
            from_=result.first_item,
            to=result.last_item,
            per_page=result.per_page,
            last_page=result.last_page,
            total=result.total,
            path=str(request.url.remove_query_params(list(request.query_params.keys()))),
        ),
        links=PageLinks(
            first=_page_url(request, 1),
            last=_page_url(request, result.last_page),
            prev=_page_url(request, result.page - 1) if result.page > 1 else None,
            next=_page_url(request, result.page + 1) if result.page < result.last_page else None,
        ),
    )


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """Create a product with its packs, yields, diets, aliases and season"""
    authorize(current_user, "store", Product)
    product = await service.store(data.model_dump(exclude_unset=True, mode="json"), current_user)
    return await _build_product_response(service, product, current_user)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """Get a single product"""
    authorize(current_user, "show", Product)
    product = await service.get(product_id)
    return await _build_product_response(service, product, current_user)


@router.api_route("/{product_id}", methods=["PUT", "PATCH"], response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """
    Update a product. Packs, yields, diets, aliases and season are replaced
    by what is sent; leaving one out clears it.
    """
    product = await service.get(product_id)
    authorize(current_user, "update", product)
    product = await service.update(product, data.model_dump(exclude_unset=True, mode="json"), current_user)
    return await _build_product_response(service, product, current_user)


@router.delete("/{product_id}", response_model=ProductResponse)
async def delete_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """Soft delete a product"""
    product = await service.get(product_id)
    authorize(current_user, "destroy", product)
    product = await service.destroy(product, current_user)
    return await _build_product_response(service, product, current_user, detail=False)


@router.post("/{product_id}/restore", response_model=ProductResponse)
async def restore_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """Undo a soft delete"""
    product = await service.get(product_id, include_deleted=True)
    authorize(current_user, "restore", product)
    product = await service.restore(product, current_user)
    return await _build_product_response(service, product, current_user)


@router.get("/{product_id}/suppliers", response_model=List[SuppliedByResponse])
async def list_product_suppliers(
    product_id: int,
    order: str = Query("ASC"),
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """Suppliers that supply this product's food category"""
    authorize(current_user, "show", Product)
    product = await service.get(product_id)
    return await service.supplied_by(product, order)


@router.get("/{product_id}/pack-price", response_model=PackPriceResponse)
async def get_pack_price(
    product_id: int,
    measurement: str = Query(...),
    volume: float = Query(..., gt=0),
    service: ProductService = Depends(get_product_service),
    current_user: User = Depends(get_current_user),
):
    """Expected price of a new pack at the product's average price per kg"""
    authorize(current_user, "show", Product)
    product = await service.get(product_id)
    return PackPriceResponse(
        measurement=measurement,
        volume=volume,
        price=product.new_pack_price(measurement, volume),
    )
