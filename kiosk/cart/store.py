"""
store.py - the shopper's order in progress.

``OrderStore`` is the only write surface for the cart. Each line item is a
point-in-time copy of a product (id, name, price) plus a quantity kept within
``[MIN_QTY, MAX_QTY]`` and a subtotal that is always recomputed from
``price * quantity``.
"""

import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel

from kiosk import config
from kiosk.cart.storage import ClientStorage
from kiosk.cart.tokens import decode_payload, encode_for_cookie
from kiosk.errors import DraftDeserializationError

log = logging.getLogger(__name__)

CART_KEY = "order"


class OrderItem(BaseModel):
    id: int
    name: str
    price: float
    quantity: int
    subtotal: float


def _line(item: OrderItem, quantity: int) -> OrderItem:
    return item.model_copy(update={"quantity": quantity, "subtotal": item.price * quantity})


class OrderStore:
    def __init__(self, items: Iterable[OrderItem] = ()):
        self._items: List[OrderItem] = []
        self.restore(items)

    @property
    def items(self) -> List[OrderItem]:
        return list(self._items)

    @property
    def total(self) -> float:
        return sum(item.subtotal for item in self._items)

    def __len__(self):
        return len(self._items)

    def __bool__(self):
        return bool(self._items)

    def get(self, id: int) -> Optional[OrderItem]:
        return next((item for item in self._items if item.id == id), None)

    def add_to_order(self, product) -> None:
        """Add one unit of ``product``; a product already in the order gets its quantity bumped."""
        if self.get(product.id):
            self.increase_quantity(product.id)
            return
        self._items.append(OrderItem(
            id=product.id,
            name=product.name,
            price=product.price,
            quantity=1,
            subtotal=product.price,
        ))

    def increase_quantity(self, id: int) -> None:
        self._set_quantity(id, lambda quantity: quantity + 1)

    def decrease_quantity(self, id: int) -> None:
        self._set_quantity(id, lambda quantity: quantity - 1)

    def remove_item(self, id: int) -> None:
        self._items = [item for item in self._items if item.id != id]

    def clear_order(self) -> None:
        self._items = []

    def restore(self, items: Iterable[OrderItem]) -> None:
        """Replace the contents with ``items``, keeping their quantities (clamped) and order."""
        restored: List[OrderItem] = []
        for item in items:
            item = OrderItem.model_validate(item)
            quantity = min(max(item.quantity, config.MIN_QTY), config.MAX_QTY)
            existing = next((i for i, line in enumerate(restored) if line.id == item.id), None)
            if existing is None:
                restored.append(_line(item, quantity))
            else:
                merged = min(restored[existing].quantity + quantity, config.MAX_QTY)
                restored[existing] = _line(restored[existing], merged)
        self._items = restored

    def _set_quantity(self, id: int, change) -> None:
        for index, item in enumerate(self._items):
            if item.id != id:
                continue
            quantity = change(item.quantity)
            if config.MIN_QTY <= quantity <= config.MAX_QTY:
                self._items[index] = _line(item, quantity)
            else:
                log.debug("Quantity for product %s stays at %s (bounds %s-%s)",
                          id, item.quantity, config.MIN_QTY, config.MAX_QTY)
            return


def pack_items(items: Iterable[OrderItem]) -> list:
    """Cookie form of line items: ``[id, name, price, quantity]`` rows, subtotal left out."""
    return [[item.id, item.name, item.price, item.quantity] for item in items]


def unpack_items(rows) -> List[OrderItem]:
    return [
        OrderItem(id=id, name=name, price=price, quantity=quantity, subtotal=price * quantity)
        for id, name, price, quantity in rows
    ]


def load_store(storage: ClientStorage) -> OrderStore:
    raw = storage.get(CART_KEY)
    if not raw:
        return OrderStore()
    try:
        payload = decode_payload(raw)
        return OrderStore(unpack_items(payload.get("order", [])))
    except (DraftDeserializationError, ValueError, AttributeError, TypeError) as e:
        log.warning("Discarding unreadable cart cookie: %s", e)
        return OrderStore()


def save_store(store: OrderStore, storage: ClientStorage) -> None:
    """Write the cart cookie; raises ``ClientStorageFullError`` and leaves the old cookie when it would not fit."""
    if not store:
        storage.delete(CART_KEY)
        return
    storage.set(CART_KEY, encode_for_cookie(CART_KEY, {"order": pack_items(store.items)}))
