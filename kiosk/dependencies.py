# kiosk/dependencies.py
from fastapi import Depends, Request

from kiosk.cart.storage import CookieStorage
from kiosk.cart.store import OrderStore, load_store
from kiosk.payments import PaymentClient


def get_storage(request: Request) -> CookieStorage:
    return CookieStorage(request)


def get_store(storage: CookieStorage = Depends(get_storage)) -> OrderStore:
    return load_store(storage)


def get_payment_client() -> PaymentClient:
    return PaymentClient()
