# kiosk/db/functions.py
import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from kiosk.db.models import Category, Order, OrderProducts, Product
from kiosk.errors import StorageError
from kiosk.utils import utcnow

log = logging.getLogger(__name__)


def _with_products():
    return selectinload(Order.order_products).selectinload(OrderProducts.product)


async def _commit(db: AsyncSession, operation: str):
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        log.error("%s failed: %s", operation, e)
        raise StorageError(operation, str(e.__class__.__name__)) from e


# Categories

async def get_all_categories(db: AsyncSession):
    result = await db.execute(select(Category).order_by(Category.id))
    return result.scalars().all()


async def get_category_by_slug(db: AsyncSession, slug: str):
    result = await db.execute(select(Category).filter(Category.slug == slug))
    return result.scalar_one_or_none()


# Products

async def get_products_by_category(db: AsyncSession, slug: str):
    result = await db.execute(
        select(Product).join(Product.category).filter(Category.slug == slug).order_by(Product.id)
    )
    return result.scalars().all()


async def get_product_by_id(db: AsyncSession, product_id: int):
    result = await db.execute(select(Product).filter(Product.id == product_id))
    return result.scalar_one_or_none()


async def count_products(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Product.id)))
    return result.scalar_one()


async def get_products_page(db: AsyncSession, page: int, page_size: int):
    skip = (page - 1) * page_size
    result = await db.execute(
        select(Product).order_by(Product.id).offset(skip).limit(page_size).options(selectinload(Product.category))
    )
    return result.scalars().all()


async def search_products(db: AsyncSession, search: str):
    # Case-insensitive "contains" on the product name
    result = await db.execute(
        select(Product).filter(Product.name.ilike(f"%{search}%")).order_by(Product.name)
        .options(selectinload(Product.category))
    )
    return result.scalars().all()


async def create_product(db: AsyncSession, name: str, price: float, category_id: int, image: str):
    new_product = Product(name=name, price=price, category_id=category_id, image=image)
    db.add(new_product)
    await _commit(db, "create product")
    await db.refresh(new_product)
    return new_product


async def update_product(db: AsyncSession, product_id: int, name: str, price: float, category_id: int, image: str):
    product = await get_product_by_id(db, product_id)
    if not product:
        return None

    product.name = name
    product.price = price
    product.category_id = category_id
    product.image = image
    await _commit(db, "update product")
    await db.refresh(product)
    return product


# Orders

async def get_order_by_id(db: AsyncSession, order_id: int):
    result = await db.execute(select(Order).filter(Order.id == order_id).options(_with_products()))
    return result.scalar_one_or_none()


async def get_order_by_reference(db: AsyncSession, reference: str):
    result = await db.execute(select(Order).filter(Order.reference == reference))
    return result.scalar_one_or_none()


async def create_order(db: AsyncSession, name: str, total: float, items, reference: str = None):
    """Insert an order with one OrderProducts row per ``(product_id, quantity)`` pair."""
    order = Order(
        name=name,
        total=total,
        reference=reference,
        order_products=[OrderProducts(product_id=product_id, quantity=quantity) for product_id, quantity in items],
    )
    db.add(order)
    await _commit(db, "create order")
    return order


async def complete_order(db: AsyncSession, order_id: int, ready_at: datetime = None):
    order = await get_order_by_id(db, order_id)
    if not order:
        return None
    if order.status:
        # Already ready: keep the first completion time
        return order

    order.status = True
    order.order_ready_at = ready_at or utcnow()
    await _commit(db, "complete order")
    return order


async def get_pending_orders(db: AsyncSession):
    result = await db.execute(
        select(Order).filter(Order.status.is_(False)).order_by(Order.date, Order.id).options(_with_products())
    )
    return result.scalars().all()


async def get_ready_orders(db: AsyncSession, limit: int = 5):
    result = await db.execute(
        select(Order).filter(Order.order_ready_at.is_not(None)).order_by(Order.order_ready_at.desc())
        .limit(limit).options(_with_products())
    )
    return result.scalars().all()
