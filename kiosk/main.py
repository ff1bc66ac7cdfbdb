# kiosk/main.py
import logging
from functools import partial
from typing import AsyncGenerator, List

from fastapi import FastAPI, Request, Form, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession

from kiosk import actions, config
from kiosk.admin import router as admin_router
from kiosk.cart.checkout import CheckoutFlow, CheckoutState
from kiosk.cart.storage import CookieStorage
from kiosk.cart.store import OrderStore, save_store
from kiosk.db.database import get_db
from kiosk.db.functions import (
    get_all_categories,
    get_category_by_slug,
    get_product_by_id,
    get_products_by_category,
    get_ready_orders,
)
from kiosk.db.init_db import init_db
from kiosk.db.schemas import OrderResponse
from kiosk.dependencies import get_payment_client, get_storage, get_store
from kiosk.errors import ClientStorageFullError
from kiosk.logging_config import setup_logging
from kiosk.payments import PaymentClient
from kiosk.templating import BASE_DIR, templates

setup_logging()
log = logging.getLogger(__name__)


async def lifespan(app: FastAPI) -> AsyncGenerator:
    await init_db()
    log.info("Kiosk service started")
    yield


app = FastAPI(title="Kiosk", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
app.include_router(admin_router)


def _local_path(path: str, default: str = "/") -> str:
    # Only redirect back inside the app
    if not path or not path.startswith("/") or path.startswith("//"):
        return default
    return path


def _save_cart(store: OrderStore, storage: CookieStorage):
    try:
        save_store(store, storage)
    except ClientStorageFullError as e:
        # The previous cart cookie stays in place
        log.warning("Cart change dropped: %s", e)


def _redirect(url: str, storage: CookieStorage = None) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=303)
    if storage is not None:
        storage.apply(response)
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "kiosk running"}


@app.get("/", response_class=HTMLResponse)
async def home(request: Request, db: AsyncSession = Depends(get_db)):
    categories = await get_all_categories(db)
    if categories:
        return RedirectResponse(url=f"/order/{categories[0].slug}", status_code=303)
    return templates.TemplateResponse(request, "order.html", {
        "categories": [], "current": None, "products": [], "store": OrderStore(),
    })


@app.get("/order/{category}", response_class=HTMLResponse)
async def order_page(request: Request, category: str, db: AsyncSession = Depends(get_db),
                     store: OrderStore = Depends(get_store)):
    current = await get_category_by_slug(db, category)
    if not current:
        raise HTTPException(status_code=404, detail="Category not found")
    categories = await get_all_categories(db)
    products = await get_products_by_category(db, category)
    return templates.TemplateResponse(request, "order.html", {
        "categories": categories, "current": current, "products": products, "store": store,
    })


@app.post("/order/add")
async def add_to_order(product_id: int = Form(...), back: str = Form("/"), db: AsyncSession = Depends(get_db),
                       store: OrderStore = Depends(get_store), storage: CookieStorage = Depends(get_storage)):
    product = await get_product_by_id(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    store.add_to_order(product)
    _save_cart(store, storage)
    return _redirect(_local_path(back), storage)


@app.post("/order/items/{product_id}/increase")
async def increase_quantity(product_id: int, back: str = Form("/"), store: OrderStore = Depends(get_store),
                            storage: CookieStorage = Depends(get_storage)):
    store.increase_quantity(product_id)
    _save_cart(store, storage)
    return _redirect(_local_path(back), storage)


@app.post("/order/items/{product_id}/decrease")
async def decrease_quantity(product_id: int, back: str = Form("/"), store: OrderStore = Depends(get_store),
                            storage: CookieStorage = Depends(get_storage)):
    store.decrease_quantity(product_id)
    _save_cart(store, storage)
    return _redirect(_local_path(back), storage)


@app.post("/order/items/{product_id}/remove")
async def remove_item(product_id: int, back: str = Form("/"), store: OrderStore = Depends(get_store),
                      storage: CookieStorage = Depends(get_storage)):
    store.remove_item(product_id)
    _save_cart(store, storage)
    return _redirect(_local_path(back), storage)


@app.get("/checkout", response_class=HTMLResponse)
async def checkout_page(request: Request, store: OrderStore = Depends(get_store)):
    return templates.TemplateResponse(request, "checkout.html", {"store": store, "notifications": []})


@app.post("/checkout", response_class=HTMLResponse)
async def go_to_pay(request: Request, name: str = Form(""), store: OrderStore = Depends(get_store),
                    storage: CookieStorage = Depends(get_storage),
                    payment: PaymentClient = Depends(get_payment_client)):
    """Save the draft and send the shopper to the hosted payment page."""
    flow = CheckoutFlow(store, storage, payment=payment)
    # The provider substitutes its session id into the success URL
    success_url = f"{request.url_for('checkout_success')}?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = str(request.url_for("checkout_canceled"))
    url = await flow.go_to_pay(name, success_url, cancel_url)
    if url:
        return _redirect(url, storage)

    response = templates.TemplateResponse(request, "checkout.html", {
        "store": store, "notifications": flow.notifications, "name": name,
    }, status_code=400)
    return storage.apply(response)


@app.get("/checkout/success", response_class=HTMLResponse, name="checkout_success")
async def checkout_success(request: Request, session_id: str = None, db: AsyncSession = Depends(get_db),
                           store: OrderStore = Depends(get_store), storage: CookieStorage = Depends(get_storage),
                           payment: PaymentClient = Depends(get_payment_client)):
    flow = CheckoutFlow(store, storage, payment=payment, submit_order=partial(actions.create_order, db),
                        state=CheckoutState.RETURNED)
    done = await flow.complete_payment(session_id)
    save_store(store, storage)
    response = templates.TemplateResponse(request, "checkout_success.html", {
        "done": done, "notifications": flow.notifications,
    })
    return storage.apply(response)


@app.get("/checkout/canceled", response_class=HTMLResponse, name="checkout_canceled")
async def checkout_canceled(request: Request, store: OrderStore = Depends(get_store),
                            storage: CookieStorage = Depends(get_storage)):
    flow = CheckoutFlow(store, storage)
    flow.cancel()
    save_store(store, storage)
    response = templates.TemplateResponse(request, "checkout_canceled.html", {})
    return storage.apply(response)


@app.get("/orders", response_class=HTMLResponse)
async def orders_ready_page(request: Request):
    return templates.TemplateResponse(request, "orders_ready.html", {"api_url": "/orders/api"})


@app.get("/orders/api", response_model=List[OrderResponse])
async def ready_orders(db: AsyncSession = Depends(get_db)):
    """Latest orders marked ready, newest first."""
    return await get_ready_orders(db, limit=config.READY_ORDERS_LIMIT)
