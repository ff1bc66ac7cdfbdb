"""
checkout.py - the order submission flow across the hosted payment redirect.

States::

    BUILDING -> AWAITING_PAYMENT -> (provider) -> RETURNED -> VALIDATING -> SUBMITTING -> DONE
    any state -> CANCELED (payment abandoned)

Each HTTP request builds a flow in the state its route implies (the ordering
pages in BUILDING, the success page in RETURNED) and drives it through the
explicit transition methods. A method called from the wrong state raises
``InvalidTransition``.

The draft is the only thing carried across the redirect. It is consumed (deleted)
right before the order is written, so the same draft cannot be submitted twice;
the order-creation action additionally refuses a second order for the same
draft reference.

With ``VERIFY_PAYMENTS`` on, an order is only submitted for the payment session
opened for that draft: the session must be paid, carry the draft reference and
charge the draft total.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from kiosk import config
from kiosk.cart.draft import OrderDraft, clear_draft, load_draft, save_draft
from kiosk.cart.storage import ClientStorage
from kiosk.cart.store import OrderStore
from kiosk.errors import (
    ClientStorageFullError,
    InvalidTransition,
    PaymentSessionError,
    StorageError,
    ValidationError,
)
from kiosk.validators import validate_order

log = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Order Done!"
UNCONFIRMED_PAYMENT = "We could not confirm your payment. Reload this page to try again"


def minor_units(amount: float) -> int:
    return int(round(amount * 100))


class CheckoutState(str, enum.Enum):
    BUILDING = "building"
    AWAITING_PAYMENT = "awaiting_payment"
    RETURNED = "returned"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    DONE = "done"
    CANCELED = "canceled"


@dataclass(frozen=True)
class Notification:
    level: str  # "success" | "error"
    message: str


class CheckoutFlow:
    def __init__(self, store: OrderStore, storage: ClientStorage, payment=None,
                 submit_order: Callable[[dict], Awaitable] = None,
                 state: CheckoutState = CheckoutState.BUILDING,
                 verify_payments: bool = None):
        self.store = store
        self.storage = storage
        self.payment = payment
        self.submit_order = submit_order
        self.state = state
        self.verify_payments = config.VERIFY_PAYMENTS if verify_payments is None else verify_payments
        self.notifications: List[Notification] = []

    def _require(self, *expected: CheckoutState):
        if self.state not in expected:
            raise InvalidTransition(self.state, expected)

    def _notify(self, level: str, message: str):
        self.notifications.append(Notification(level, message))

    def _notify_issues(self, error: ValidationError):
        for issue in error.issues:
            self._notify("error", issue.message)

    @property
    def errors(self) -> List[str]:
        return [n.message for n in self.notifications if n.level == "error"]

    async def go_to_pay(self, name: str, success_url: str, cancel_url: str) -> Optional[str]:
        """
        Snapshot the order and ask the provider for a hosted payment page.

        Returns the URL to redirect to, or None when the shopper has to stay on
        the checkout page (empty or invalid order, order too large for the
        draft cookie, provider failure).
        """
        self._require(CheckoutState.BUILDING)
        if not self.store:
            self._notify("error", "Your order is empty")
            return None

        total = self.store.total
        # Reject what the success page would reject before the shopper pays for it
        candidate = {"name": name, "total": total, "order": [item.model_dump() for item in self.store.items]}
        try:
            order = validate_order(candidate).unwrap()
        except ValidationError as e:
            self._notify_issues(e)
            return None

        try:
            draft = save_draft(self.storage, self.store.items, total, order.name)
        except ClientStorageFullError as e:
            log.warning("Checkout refused, draft does not fit in a cookie: %s", e)
            self._notify("error", "Your order is too large to pay at once. Remove some items and try again")
            return None

        try:
            session = await self.payment.create_session(
                amount_minor_units=minor_units(total),
                label=config.CHECKOUT_LABEL,
                success_url=success_url,
                cancel_url=cancel_url,
                reference=draft.reference,
            )
            save_draft(self.storage, draft.order, draft.total, draft.name,
                       reference=draft.reference, session_id=session.id)
        except (PaymentSessionError, ClientStorageFullError) as e:
            log.warning("Checkout for draft %s could not start: %s", draft.reference, e)
            self._notify("error", "Something went wrong. Try again")
            return None

        self.state = CheckoutState.AWAITING_PAYMENT
        return session.url

    def cancel(self):
        """Payment abandoned: drop the draft and the order in progress."""
        clear_draft(self.storage)
        self.store.clear_order()
        self.state = CheckoutState.CANCELED
        log.info("Checkout canceled, draft discarded")

    def on_draft_rehydrated(self, draft: OrderDraft):
        self._require(CheckoutState.RETURNED)
        self.store.restore(draft.order)
        self.state = CheckoutState.VALIDATING

    async def complete_payment(self, session_id: str = None) -> bool:
        """
        Submit the order saved before the payment redirect.

        Returns True when the flow reached DONE. Without a stored draft there is
        nothing to do and the flow stays RETURNED.
        """
        self._require(CheckoutState.RETURNED)
        draft = load_draft(self.storage)
        if draft is None:
            log.info("Success page reached without a checkout draft, nothing to submit")
            return False

        if self.verify_payments and not await self._payment_confirmed(session_id, draft):
            return False

        self.on_draft_rehydrated(draft)
        candidate = {
            "name": draft.name,
            "total": draft.total,
            "order": [item.model_dump() for item in self.store.items],
            "reference": draft.reference,
        }
        try:
            validate_order(candidate).unwrap()
        except ValidationError as e:
            self._notify_issues(e)
            return False

        self.state = CheckoutState.SUBMITTING
        clear_draft(self.storage)
        try:
            response = await self.submit_order(candidate)
        except StorageError as e:
            log.error("Order for draft %s was not saved: %s", draft.reference, e)
            save_draft(self.storage, draft.order, draft.total, draft.name,
                       reference=draft.reference, session_id=draft.session_id)
            self._notify("error", "Your order could not be saved. Reload this page to try again")
            self.state = CheckoutState.RETURNED
            return False

        for issue in getattr(response, "errors", None) or []:
            self._notify("error", issue.message)

        self._notify("success", SUCCESS_MESSAGE)
        self.store.clear_order()
        clear_draft(self.storage)
        self.state = CheckoutState.DONE
        return True

    async def _payment_confirmed(self, session_id: Optional[str], draft: OrderDraft) -> bool:
        """The provider session must be the one opened for ``draft``, paid in full."""
        if not session_id:
            log.warning("Return from payment without a session id for draft %s", draft.reference)
            self._notify("error", UNCONFIRMED_PAYMENT)
            return False
        try:
            session = await self.payment.retrieve_session(session_id)
        except PaymentSessionError as e:
            log.error("Could not confirm payment session %s: %s", session_id, e)
            self._notify("error", UNCONFIRMED_PAYMENT)
            return False

        if (
            (draft.session_id and session_id != draft.session_id)
            or session.get("client_reference_id") != draft.reference
            or session.get("amount_total") != minor_units(draft.total)
        ):
            log.warning("Payment session %s does not belong to draft %s", session_id, draft.reference)
            self._notify("error", "This payment does not match your order")
            return False
        if session.get("payment_status") != "paid":
            log.warning("Payment session %s is not paid, order not submitted", session_id)
            self._notify("error", "Your payment was not completed")
            return False
        return True
