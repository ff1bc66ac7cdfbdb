"""
actions.py - validated writes behind the admin and checkout forms.

Each action validates its input first and returns the field issues without
touching the database when validation fails. On success it performs the write
and names the view that has to be refreshed (``refresh_path``); routes answer
with a redirect to it. Database failures propagate as ``StorageError``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from kiosk.db import functions
from kiosk.validators import Issue, validate_order, validate_order_id, validate_product

log = logging.getLogger(__name__)

ADMIN_ORDERS_PATH = "/admin/orders"
ADMIN_PRODUCTS_PATH = "/admin/products"


@dataclass
class ActionResult:
    errors: List[Issue] = field(default_factory=list)
    refresh_path: Optional[str] = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return not self.errors


async def create_product(db: AsyncSession, data) -> ActionResult:
    result = validate_product(data)
    if not result.success:
        return ActionResult(errors=result.issues)

    product = await functions.create_product(db, **result.value.model_dump())
    log.info("Created product %s (%s)", product.id, product.name)
    return ActionResult(refresh_path=ADMIN_PRODUCTS_PATH, value=product)


async def update_product(db: AsyncSession, data, id: int) -> ActionResult:
    result = validate_product(data)
    if not result.success:
        return ActionResult(errors=result.issues)

    product = await functions.update_product(db, id, **result.value.model_dump())
    if product is None:
        return ActionResult(errors=[Issue(path="id", message="Product not found")])
    log.info("Updated product %s", id)
    return ActionResult(refresh_path=ADMIN_PRODUCTS_PATH, value=product)


async def create_order(db: AsyncSession, data) -> ActionResult:
    result = validate_order(data)
    if not result.success:
        return ActionResult(errors=result.issues)

    order = result.value
    if order.reference:
        existing = await functions.get_order_by_reference(db, order.reference)
        if existing:
            log.warning("Order for draft %s already exists as #%s, not creating it again", order.reference, existing.id)
            return ActionResult(refresh_path=ADMIN_ORDERS_PATH, value=existing)

    created = await functions.create_order(
        db,
        name=order.name,
        total=order.total,
        items=[(item.id, item.quantity) for item in order.order],
        reference=order.reference,
    )
    log.info("Created order #%s for %s (total %.2f)", created.id, created.name, created.total)
    return ActionResult(refresh_path=ADMIN_ORDERS_PATH, value=created)


async def complete_order(db: AsyncSession, data) -> ActionResult:
    result = validate_order_id(data)
    if not result.success:
        return ActionResult(errors=result.issues)

    order = await functions.complete_order(db, result.value.order_id)
    if order is None:
        return ActionResult(errors=[Issue(path="order_id", message="Order not found")])
    log.info("Order #%s ready at %s", order.id, order.order_ready_at)
    return ActionResult(refresh_path=ADMIN_ORDERS_PATH, value=order)
