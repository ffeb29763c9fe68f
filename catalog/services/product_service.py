"""
Product workflow service - store, update, destroy and restore products.

Each workflow runs in one transaction on the request session: every write is
flushed, committed once at the end, and rolled back as a whole if any step
fails. Events go out only after the commit, then the product is reloaded so
callers see what listeners changed (average price, image).

Concurrent updates of the same product are not coordinated: the last commit
wins, and two full replaces of diets or tags can interleave.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, distinct, inspect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from catalog.config import get_settings
from catalog.database import AsyncSessionLocal
from catalog.exceptions import CannotDeleteError, ForbiddenError, NotFoundError, ValidationError
from catalog.models.availability import SeasonStatus
from catalog.models.diet import Diet
from catalog.models.product import FILLABLE, Product
from catalog.models.recipe import Recipe, RecipeIngredient
from catalog.models.reference import Brand, Density, FoodCategory, Nutrition
from catalog.models.supplier import Supplier
from catalog.models.user import User
from catalog.services import events
from catalog.services.events import EventBus, ProductEvent, event_bus
from catalog.services.product_filter import Page, ProductFilter
from catalog.services.related_collections import (
    AvailabilityService,
    NutritionInfoService,
    PreparationService,
    ProductPackService,
    replace_tags,
    sync_diets,
)

logger = logging.getLogger(__name__)
settings = get_settings()

# Foreign keys checked before anything is written
REFERENCES = {
    "brand_id": Brand,
    "nutrition_id": Nutrition,
    "density_id": Density,
    "supplier_id": Supplier,
    "food_category_id": FoodCategory,
}


class ProductService:
    def __init__(
        self,
        db: AsyncSession,
        bus: Optional[EventBus] = None,
        session_factory: Optional[async_sessionmaker] = None,
        packs: Optional[ProductPackService] = None,
        preparations: Optional[PreparationService] = None,
        availability: Optional[AvailabilityService] = None,
        nutrition_info: Optional[NutritionInfoService] = None,
    ):
        self.db = db
        self.bus = bus or event_bus
        self.session_factory = session_factory or AsyncSessionLocal
        self.packs = packs or ProductPackService()
        self.preparations = preparations or PreparationService()
        self.availability = availability or AvailabilityService()
        self.nutrition_info = nutrition_info or NutritionInfoService()

    # --- Queries ---

    async def get(self, product_id: int, include_deleted: bool = False) -> Product:
        query = (
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        if not include_deleted:
            query = query.where(Product.deleted_at.is_(None))
        product = (await self.db.execute(query)).scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    async def paginate(self, filters: ProductFilter, page: int = 1, per_page: Optional[int] = None) -> Page[Product]:
        per_page = min(max(1, per_page or settings.DEFAULT_PER_PAGE), settings.MAX_PER_PAGE)
        page = max(1, page)

        base = select(Product).where(Product.deleted_at.is_(None))
        base = filters.apply(base)

        total = await self.db.scalar(select(func.count()).select_from(base.order_by(None).subquery()))
        result = await self.db.execute(base.offset((page - 1) * per_page).limit(per_page))
        return Page(items=list(result.scalars().all()), total=total or 0, page=page, per_page=per_page)

    async def is_used_in_any_recipe(self, product: Product) -> bool:
        pack_ids = [pack.id for pack in product.packs if pack.id is not None]
        if not pack_ids:
            return False
        count = await self.db.scalar(
            select(func.count(distinct(Recipe.id)))
            .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
            .where(RecipeIngredient.product_pack_id.in_(pack_ids))
        )
        return bool(count)

    async def supplied_by(self, product: Product, order: str = "ASC") -> List[Dict[str, Any]]:
        """Suppliers of the product's food category, with their branches."""
        if product.food_category_id is None:
            return []
        name_order = Supplier.name.desc() if (order or "").upper() == "DESC" else Supplier.name.asc()
        # Suppliers already in the session may be branches whose own branches were never loaded
        result = await self.db.execute(
            select(Supplier)
            .where(Supplier.categories.any(FoodCategory.id == product.food_category_id))
            .options(selectinload(Supplier.branches), selectinload(Supplier.categories))
            .order_by(name_order)
            .execution_options(populate_existing=True)
        )
        suppliers = result.scalars().all()

        counts = dict((await self.db.execute(
            select(Product.supplier_id, func.count(Product.id))
            .where(Product.deleted_at.is_(None), Product.supplier_id.in_([s.id for s in suppliers]))
            .group_by(Product.supplier_id)
        )).all())

        supplied = []
        for supplier in suppliers:
            entry = {
                "name": supplier.name,
                "supplies": ",".join(c.name for c in supplier.categories),
                "region": supplier.region,
                "ingredients": counts.get(supplier.id, 0),
                "branches": [],
            }
            if len(supplier.branches) >= 2:
                entry["region"] = "Multiple"
                entry["branches"] = [
                    {"name": branch.name, "supplies": "", "region": branch.region, "ingredients": 0}
                    for branch in supplier.branches
                ]
            supplied.append(entry)
        return supplied

    # --- Workflows ---

    async def store(self, attributes: Dict[str, Any], user: User) -> Product:
        await self._validate_references(attributes)
        values = {key: attributes[key] for key in FILLABLE if key in attributes}
        owner_type, owner_id = ("supplier", user.supplier_id) if user.has_supplier() else ("user", user.id)

        try:
            product = Product(
                **values,
                owner_type=owner_type,
                owner_id=owner_id,
                preparations=self.preparations.build(attributes.get("yields") or []),
                packs=self.packs.build(attributes.get("packs") or []),
                availability=[],
                diets=[],
            )
            self.db.add(product)
            await self.db.flush()

            await replace_tags(self.db, product, attributes.get("aliases") or [])
            await sync_diets(self.db, product, attributes.get("diets") or [])
            await self.nutrition_info.initialize_for(self.db, product)
            self.availability.initialize_for(product, attributes.get("season") or [])
            await self.packs.refresh_prices(self.db, product)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Stored product {product.id} '{product.name}' for {owner_type} {owner_id}")
        product = await self.get(product.id)

        event = self._event(product, attributes, user)
        await self.bus.publish(events.IMAGE_STORED, event)
        await self.bus.publish(events.PRICE_AVG, event)
        await self.bus.publish(events.PRODUCT_STORED, event)
        await self.bus.publish(events.EDITABLE_STORED, event)

        return await self.get(product.id)

    async def update(self, product: Product, attributes: Dict[str, Any], user: User) -> Product:
        await self._validate_references(attributes)
        values = {key: attributes[key] for key in FILLABLE if key in attributes}
        old_values = {key: getattr(product, key) for key in values}

        try:
            for key, value in values.items():
                setattr(product, key, value)

            if inspect(product).attrs.nutrition_id.history.has_changes():
                await self.nutrition_info.recompute_for(self.db, product)

            await self.db.flush()

            self.preparations.reconcile(product, attributes.get("yields") or [])
            self.packs.reconcile(product, attributes.get("packs") or [])
            added, removed = await sync_diets(self.db, product, attributes.get("diets") or [])
            await replace_tags(self.db, product, attributes.get("aliases") or [])
            self.availability.update_for(product, attributes.get("season") or [])
            await self.packs.refresh_prices(self.db, product)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Updated product {product.id}: diets +{added} -{removed}")
        product = await self.get(product.id)

        event = self._event(product, attributes, user, old_attributes=old_values)
        await self.bus.publish(events.IMAGE_UPDATED, event)
        await self.bus.publish(events.PRODUCT_UPDATED, event)
        await self.bus.publish(events.EDITABLE_UPDATED, event)
        await self.bus.publish(events.PRICE_AVG, event)

        return await self.get(product.id)

    async def destroy(self, product: Product, user: User) -> Product:
        """Soft delete. Recipes using the product's packs do not block it."""
        if not product.is_deletable_by(user):
            raise CannotDeleteError(product.id)

        try:
            product.deleted_at = datetime.utcnow()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.bus.publish(events.PRODUCT_DESTROYED, self._event(product, {}, user))
        return product

    async def restore(self, product: Product, user: User) -> Product:
        if not product.is_deletable_by(user):
            raise ForbiddenError("restore")
        try:
            product.deleted_at = None
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Restored product {product.id}")
        return await self.get(product.id)

    # --- Helpers ---

    def _event(self, product: Product, attributes: Dict[str, Any], user: User,
               old_attributes: Optional[Dict[str, Any]] = None) -> ProductEvent:
        return ProductEvent(
            product=product,
            attributes=attributes,
            old_attributes=old_attributes,
            user=user,
            session_factory=self.session_factory,
        )

    async def _exists(self, model, ids) -> set:
        ids = set(ids)
        if not ids:
            return set()
        result = await self.db.execute(select(model.id).where(model.id.in_(ids)))
        return set(result.scalars().all())

    async def _validate_references(self, attributes: Dict[str, Any]) -> None:
        """Fail before writing anything if a referenced row doesn't exist."""
        errors = {}

        if "name" in attributes and not attributes["name"]:
            errors["name"] = "Name may not be empty"

        for field, model in REFERENCES.items():
            value = attributes.get(field)
            if value is not None and await self.db.get(model, value) is None:
                errors[field] = f"Unknown {field.removesuffix('_id').replace('_', ' ')} {value}"

        diet_ids = attributes.get("diets") or []
        missing = set(diet_ids) - await self._exists(Diet, diet_ids)
        if missing:
            errors["diets"] = f"Unknown diets {sorted(missing)}"

        status_ids = [entry["season_status_id"] for entry in attributes.get("season") or []]
        missing = set(status_ids) - await self._exists(SeasonStatus, status_ids)
        if missing:
            errors["season"] = f"Unknown season statuses {sorted(missing)}"

        if errors:
            raise ValidationError(errors)
