"""
Default listeners for product events: image references, average price,
activity log and edit audit trail
"""
import logging
import os
from urllib.parse import urlparse

from sqlalchemy import select, update, delete

from catalog.models.edit_log import EditLog
from catalog.models.media import Media, PRODUCT_COLLECTION
from catalog.models.product import MORPH_TYPE, Product
from catalog.models.product_pack import ProductPack
from catalog.services import events
from catalog.services.events import EventBus, ProductEvent

logger = logging.getLogger(__name__)


def _file_name(url: str) -> str:
    return os.path.basename(urlparse(url).path) or url


async def attach_image(event: ProductEvent) -> None:
    url = event.attributes.get("image")
    if not url:
        return
    async with event.session_factory() as session:
        session.add(Media(
            model_type=MORPH_TYPE,
            model_id=event.product.id,
            collection_name=PRODUCT_COLLECTION,
            url=url,
            file_name=_file_name(url),
        ))
        await session.commit()
    logger.info(f"Attached image to product {event.product.id}")


async def replace_image(event: ProductEvent) -> None:
    """A present-but-empty image clears it, a missing key leaves it alone."""
    if "image" not in event.attributes:
        return
    url = event.attributes["image"]
    current = event.product.image
    if current is not None and current.url == url:
        return

    async with event.session_factory() as session:
        await session.execute(
            delete(Media).where(
                Media.model_type == MORPH_TYPE,
                Media.model_id == event.product.id,
                Media.collection_name == PRODUCT_COLLECTION,
            )
        )
        if url:
            session.add(Media(
                model_type=MORPH_TYPE,
                model_id=event.product.id,
                collection_name=PRODUCT_COLLECTION,
                url=url,
                file_name=_file_name(url),
            ))
        await session.commit()
    logger.info(f"Replaced image of product {event.product.id}")


async def recalculate_price_avg(event: ProductEvent) -> None:
    """price_avg = mean price per kg over the packs that have one."""
    async with event.session_factory() as session:
        result = await session.execute(
            select(ProductPack.price_per_kg).where(
                ProductPack.product_id == event.product.id,
                ProductPack.price_per_kg.isnot(None),
            )
        )
        prices = result.scalars().all()
        price_avg = round(sum(prices) / len(prices), 2) if prices else None

        await session.execute(
            update(Product).where(Product.id == event.product.id).values(price_avg=price_avg)
        )
        await session.commit()
    logger.debug(f"Product {event.product.id} price_avg={price_avg}")


async def log_stored(event: ProductEvent) -> None:
    logger.info(f"Product {event.product.id} '{event.product.name}' stored")


async def log_updated(event: ProductEvent) -> None:
    logger.info(f"Product {event.product.id} updated: {sorted(event.attributes)}")


async def log_destroyed(event: ProductEvent) -> None:
    logger.info(f"Product {event.product.id} soft-deleted")


async def _record_edit(event: ProductEvent, action: str) -> None:
    async with event.session_factory() as session:
        session.add(EditLog(
            entity_type=MORPH_TYPE,
            entity_id=event.product.id,
            action=action,
            user_id=getattr(event.user, "id", None),
            new_values=event.attributes,
            old_values=event.old_attributes,
        ))
        await session.commit()


async def record_stored(event: ProductEvent) -> None:
    await _record_edit(event, "stored")


async def record_updated(event: ProductEvent) -> None:
    await _record_edit(event, "updated")


def register_default_listeners(bus: EventBus) -> EventBus:
    bus.subscribe(events.IMAGE_STORED, attach_image)
    bus.subscribe(events.IMAGE_UPDATED, replace_image)
    bus.subscribe(events.PRICE_AVG, recalculate_price_avg)
    bus.subscribe(events.PRODUCT_STORED, log_stored)
    bus.subscribe(events.PRODUCT_UPDATED, log_updated)
    bus.subscribe(events.PRODUCT_DESTROYED, log_destroyed)
    bus.subscribe(events.EDITABLE_STORED, record_stored)
    bus.subscribe(events.EDITABLE_UPDATED, record_updated)
    return bus
