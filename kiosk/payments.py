"""
payments.py - client for the hosted checkout provider (Stripe REST API).

Only two calls are needed: create a checkout session and read it back to
confirm the payment. Every failure, network or provider side, surfaces as
``PaymentSessionError`` so the checkout flow can report it and stay put.
"""

import logging
from dataclasses import dataclass

import httpx

from kiosk import config
from kiosk.errors import PaymentSessionError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


class PaymentClient:
    """
    Client for the payment provider.
    A fresh ``httpx.AsyncClient`` is opened per call with a fixed timeout, so a
    slow provider fails visibly instead of hanging the request.
    """
    def __init__(self, secret_key: str = None, base_url: str = None, timeout: float = None,
                 transport: httpx.AsyncBaseTransport = None):
        self.secret_key = secret_key if secret_key is not None else config.STRIPE_SECRET_KEY
        self.base_url = base_url or config.PAYMENT_API_URL
        self.timeout = httpx.Timeout(timeout or config.PAYMENT_TIMEOUT)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.secret_key}"},
            transport=self.transport,
        )

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            message = _provider_message(e.response)
            log.error("Payment provider returned HTTP %s: %s", e.response.status_code, message)
            raise PaymentSessionError(message, status_code=e.response.status_code) from e
        except httpx.TimeoutException as e:
            log.error("Payment provider timed out: %s", e)
            raise PaymentSessionError("The payment provider did not answer in time") from e
        except httpx.RequestError as e:
            log.error("Payment provider unreachable: %s", e)
            raise PaymentSessionError("The payment provider is not reachable") from e

    async def create_session(self, amount_minor_units: int, label: str, success_url: str, cancel_url: str,
                             reference: str = None) -> CheckoutSession:
        """
        Creates a hosted checkout session for a single line of ``amount_minor_units``.
        ``reference`` is stored on the session as ``client_reference_id``.

        Returns:
            CheckoutSession: session id and the hosted payment page URL.
        Raises:
            PaymentSessionError: bad input, provider error or network failure.
        """
        if not amount_minor_units or amount_minor_units <= 0 or not label:
            raise PaymentSessionError("Missing amount or label", status_code=400)

        data = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "line_items[0][price_data][currency]": config.CURRENCY,
            "line_items[0][price_data][product_data][name]": label,
            "line_items[0][price_data][unit_amount]": str(amount_minor_units),
            "line_items[0][quantity]": "1",
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if reference:
            data["client_reference_id"] = reference
        session = await self._request("POST", "/v1/checkout/sessions", data=data)
        url = session.get("url")
        if not url or not session.get("id"):
            raise PaymentSessionError("The payment provider returned no checkout URL")
        log.info("Created checkout session %s for %s minor units", session.get("id"), amount_minor_units)
        return CheckoutSession(id=session["id"], url=url)

    async def retrieve_session(self, session_id: str) -> dict:
        """Session as the provider reports it (``payment_status``, ``amount_total``, ``client_reference_id``...)."""
        return await self._request("GET", f"/v1/checkout/sessions/{session_id}")


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Payment provider error (HTTP {response.status_code})"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or "Payment provider error"
    if isinstance(error, str):
        return error
    return f"Payment provider error (HTTP {response.status_code})"
