# kiosk/cart/draft.py
import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel

from kiosk.cart.storage import ClientStorage
from kiosk.cart.store import OrderItem, pack_items, unpack_items
from kiosk.cart.tokens import decode_payload, encode_for_cookie
from kiosk.errors import DraftDeserializationError

log = logging.getLogger(__name__)

DRAFT_KEY = "orderData"


class OrderDraft(BaseModel):
    """Snapshot of the order taken right before leaving for the payment page."""
    order: List[OrderItem]
    total: float
    name: str
    reference: str = ""
    session_id: Optional[str] = None  # payment session opened for this draft


def save_draft(storage: ClientStorage, order: List[OrderItem], total: float, name: str,
               reference: str = None, session_id: str = None) -> OrderDraft:
    """
    Write the draft under ``DRAFT_KEY``, replacing any previous one.

    Raises ``ClientStorageFullError`` without touching the stored draft when the
    order is too big for a cookie.
    """
    draft = OrderDraft(order=list(order), total=total, name=name or "",
                       reference=reference or uuid.uuid4().hex, session_id=session_id)
    payload = {
        "order": pack_items(draft.order),
        "total": draft.total,
        "name": draft.name,
        "reference": draft.reference,
        "session_id": draft.session_id,
    }
    storage.set(DRAFT_KEY, encode_for_cookie(DRAFT_KEY, payload))
    log.info("Saved checkout draft %s (%d items, total %.2f)", draft.reference, len(draft.order), draft.total)
    return draft


def load_draft(storage: ClientStorage) -> Optional[OrderDraft]:
    """Return the stored draft, or None when there is none or it cannot be read."""
    raw = storage.get(DRAFT_KEY)
    if not raw:
        return None
    try:
        payload = decode_payload(raw)
        return OrderDraft(
            order=unpack_items(payload["order"]),
            total=payload["total"],
            name=payload["name"],
            reference=payload.get("reference") or "",
            session_id=payload.get("session_id"),
        )
    except (DraftDeserializationError, KeyError, ValueError, TypeError) as e:
        log.warning("Ignoring unreadable checkout draft: %s", e)
        return None


def clear_draft(storage: ClientStorage) -> None:
    storage.delete(DRAFT_KEY)
