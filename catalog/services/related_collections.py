"""
Reconciliation of a product's child collections against the desired state
sent with a request.

Packs and preparations are diffed by id, availability by month, diets by id.
Tags and nutrition info are thrown away and rebuilt.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.config import get_settings
from catalog.models.availability import ProductAvailability
from catalog.models.diet import Diet
from catalog.models.nutrition_info import NutritionInfo, NUTRIENTS, REFERENCE_INTAKES
from catalog.models.preparation import Preparation
from catalog.models.product import MORPH_TYPE, Product
from catalog.models.product_pack import ProductPack
from catalog.models.reference import Density, Nutrition
from catalog.models.tag import Tag

logger = logging.getLogger(__name__)
settings = get_settings()


def reconcile_by_id(collection: list, desired: Iterable[Dict[str, Any]], model, fields: List[str]) -> None:
    """
    Make `collection` match `desired`:
    items whose id is known are updated in place, the rest are created,
    and existing children that aren't listed are removed (delete-orphan).
    """
    existing = {child.id: child for child in collection if child.id is not None}
    kept = set()

    for item in desired:
        values = {name: item[name] for name in fields if name in item}
        child = existing.get(item.get("id"))
        if child is None:
            collection.append(model(**values))
            continue
        for name, value in values.items():
            setattr(child, name, value)
        kept.add(child.id)

    for child_id, child in existing.items():
        if child_id not in kept:
            collection.remove(child)


class PreparationService:
    FIELDS = ["name", "value", "default"]

    def build(self, yields: Iterable[Dict[str, Any]]) -> List[Preparation]:
        return [Preparation(**{k: item[k] for k in self.FIELDS if k in item}) for item in yields]

    def reconcile(self, product: Product, yields: Iterable[Dict[str, Any]]) -> None:
        reconcile_by_id(product.preparations, yields, Preparation, self.FIELDS)


class ProductPackService:
    FIELDS = ["name", "measurement", "volume", "price", "default", "available"]

    def build(self, packs: Iterable[Dict[str, Any]]) -> List[ProductPack]:
        return [ProductPack(**{k: item[k] for k in self.FIELDS if k in item}) for item in packs]

    def reconcile(self, product: Product, packs: Iterable[Dict[str, Any]]) -> None:
        reconcile_by_id(product.packs, packs, ProductPack, self.FIELDS)

    async def density_for(self, db: AsyncSession, product: Product) -> Optional[float]:
        # Looked up by id: the density relation is stale when density_id just changed
        if product.is_water():
            return 1.0
        if product.density_id is None:
            return None
        density = await db.get(Density, product.density_id)
        return density.value if density else None

    async def refresh_prices(self, db: AsyncSession, product: Product) -> None:
        density = await self.density_for(db, product)
        for pack in product.packs:
            pack.set_price_per_kg(density)


class AvailabilityService:
    """One row per month; the last entry for a month wins."""

    def _desired(self, season: Iterable[Dict[str, Any]]) -> Dict[str, int]:
        return {entry["month"]: entry["season_status_id"] for entry in season}

    def initialize_for(self, product: Product, season: Iterable[Dict[str, Any]]) -> None:
        for month, status_id in self._desired(season).items():
            product.availability.append(ProductAvailability(month=month, season_status_id=status_id))

    def update_for(self, product: Product, season: Iterable[Dict[str, Any]]) -> None:
        desired = self._desired(season)
        for row in list(product.availability):
            if row.month in desired:
                row.season_status_id = desired.pop(row.month)
            else:
                product.availability.remove(row)
        for month, status_id in desired.items():
            product.availability.append(ProductAvailability(month=month, season_status_id=status_id))


class NutritionInfoService:
    """Builds the nutrition graph rows for every age group."""

    def rows_for(self, product: Product, nutrition: Nutrition) -> List[NutritionInfo]:
        rows = []
        for age_group, intakes in REFERENCE_INTAKES.items():
            for index, (column, label, unit) in enumerate(NUTRIENTS):
                value = getattr(nutrition, column)
                if value is None:
                    continue
                reference = intakes.get(column)
                rows.append(NutritionInfo(
                    infoable_type=MORPH_TYPE,
                    infoable_id=product.id,
                    age_group=age_group,
                    index=index,
                    name=label,
                    value=value,
                    unit=unit,
                    percent=round(value / reference * 100, 1) if reference else None,
                ))
        return rows

    async def initialize_for(self, db: AsyncSession, product: Product) -> None:
        if product.nutrition_id is None:
            return
        nutrition = await db.get(Nutrition, product.nutrition_id)
        if nutrition is not None:
            db.add_all(self.rows_for(product, nutrition))

    async def recompute_for(self, db: AsyncSession, product: Product) -> None:
        await db.execute(
            delete(NutritionInfo).where(
                NutritionInfo.infoable_type == MORPH_TYPE,
                NutritionInfo.infoable_id == product.id,
            )
        )
        await self.initialize_for(db, product)
        logger.info(f"Recomputed nutrition info for product {product.id}")


async def desired_diet_ids(db: AsyncSession, product: Product, diet_ids: Iterable[int]) -> List[int]:
    """Requested diets, plus the nuts diet when the name says so."""
    desired = list(dict.fromkeys(diet_ids))
    if product.contains_nuts():
        nuts_diet = (await db.execute(
            select(Diet).where(Diet.name == settings.NUTS_DIET_NAME)
        )).scalar_one_or_none()
        if nuts_diet is not None and nuts_diet.id not in desired:
            desired.append(nuts_diet.id)
    return desired


async def sync_diets(db: AsyncSession, product: Product, diet_ids: Iterable[int]) -> tuple[list, list]:
    """Set the product's diets to exactly the desired set. Returns (added ids, removed ids)."""
    desired = await desired_diet_ids(db, product, diet_ids)
    current = {diet.id: diet for diet in product.diets}

    removed = [diet for diet_id, diet in current.items() if diet_id not in desired]
    added_ids = [diet_id for diet_id in desired if diet_id not in current]

    for diet in removed:
        product.diets.remove(diet)
    if added_ids:
        result = await db.execute(select(Diet).where(Diet.id.in_(added_ids)))
        product.diets.extend(result.scalars().all())

    return added_ids, [diet.id for diet in removed]


async def replace_tags(db: AsyncSession, product: Product, aliases: Iterable[str]) -> List[Tag]:
    """Drop every tag of the product and create one per alias. Tag ids don't survive."""
    await db.execute(
        delete(Tag).where(Tag.taggable_type == MORPH_TYPE, Tag.taggable_id == product.id)
    )
    tags = [Tag(name=alias, taggable_type=MORPH_TYPE, taggable_id=product.id) for alias in aliases]
    db.add_all(tags)
    return tags
