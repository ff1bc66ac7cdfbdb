# kiosk/admin.py
import math
from typing import List
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from kiosk import actions, config
from kiosk.db.database import get_db
from kiosk.db.functions import (
    count_products,
    get_all_categories,
    get_pending_orders,
    get_product_by_id,
    get_products_page,
    search_products,
)
from kiosk.db.schemas import OrderResponse
from kiosk.errors import StorageError
from kiosk.templating import templates
from kiosk.validators import validate_search

router = APIRouter(prefix="/admin")

STORAGE_FAILURE = "The change could not be saved. Try again"


def _product_form(request: Request, categories, values=None, product_id: int = None, errors=(), status_code=200):
    return templates.TemplateResponse(request, "admin/product_form.html", {
        "categories": categories,
        "product_id": product_id,
        "values": values or {},
        "errors": list(errors),
    }, status_code=status_code)


def _product_values(product) -> dict:
    return {"name": product.name, "price": product.price, "category_id": product.category_id, "image": product.image}


# Orders

@router.get("/orders", response_class=HTMLResponse)
async def admin_orders_page(request: Request):
    return templates.TemplateResponse(request, "admin/orders.html", {"api_url": "/admin/orders/api"})


@router.get("/orders/api", response_model=List[OrderResponse])
async def pending_orders(db: AsyncSession = Depends(get_db)):
    """Orders still waiting for the kitchen (status = false)."""
    return await get_pending_orders(db)


@router.post("/orders/complete")
async def complete_order(order_id: str = Form(""), db: AsyncSession = Depends(get_db)):
    try:
        result = await actions.complete_order(db, {"order_id": order_id})
    except StorageError:
        raise HTTPException(status_code=503, detail=STORAGE_FAILURE)
    if not result.ok:
        raise HTTPException(status_code=400, detail=[issue.message for issue in result.errors])
    return RedirectResponse(url=result.refresh_path, status_code=303)


# Products

@router.get("/products", response_class=HTMLResponse)
async def products_page(request: Request, page: str = "1", db: AsyncSession = Depends(get_db)):
    try:
        page = int(page)
    except ValueError:
        page = 1
    if page < 1:
        return RedirectResponse(url="/admin/products", status_code=303)

    total_products = await count_products(db)
    total_pages = math.ceil(total_products / config.PAGE_SIZE)
    if total_pages and page > total_pages:
        return RedirectResponse(url="/admin/products", status_code=303)

    products = await get_products_page(db, page, config.PAGE_SIZE)
    return templates.TemplateResponse(request, "admin/products.html", {
        "products": products,
        "page": page,
        "total_pages": total_pages,
        "errors": [],
    })


@router.post("/products/search")
async def submit_search(request: Request, search: str = Form("")):
    result = validate_search({"search": search})
    if not result.success:
        return templates.TemplateResponse(request, "admin/search.html", {
            "search": search, "products": None, "errors": [issue.message for issue in result.issues],
        }, status_code=400)
    query = urlencode({"search": result.value.search})
    return RedirectResponse(url=f"/admin/products/search?{query}", status_code=303)


@router.get("/products/search", response_class=HTMLResponse)
async def search_page(request: Request, search: str = "", db: AsyncSession = Depends(get_db)):
    result = validate_search({"search": search})
    if not result.success:
        return RedirectResponse(url="/admin/products", status_code=303)
    products = await search_products(db, result.value.search)
    return templates.TemplateResponse(request, "admin/search.html", {
        "search": result.value.search, "products": products, "errors": [],
    })


@router.get("/products/new", response_class=HTMLResponse)
async def new_product_page(request: Request, db: AsyncSession = Depends(get_db)):
    return _product_form(request, await get_all_categories(db))


@router.post("/products/new", response_class=HTMLResponse)
async def create_product(request: Request, name: str = Form(""), price: str = Form(""),
                         category_id: str = Form(""), image: str = Form(""),
                         db: AsyncSession = Depends(get_db)):
    values = {"name": name, "price": price, "category_id": category_id, "image": image}
    try:
        result = await actions.create_product(db, values)
    except StorageError:
        return _product_form(request, await get_all_categories(db), values=values,
                             errors=[STORAGE_FAILURE], status_code=503)
    if not result.ok:
        return _product_form(request, await get_all_categories(db), values=values,
                             errors=[issue.message for issue in result.errors], status_code=400)
    return RedirectResponse(url=result.refresh_path, status_code=303)


@router.get("/products/{product_id}/edit", response_class=HTMLResponse)
async def edit_product_page(request: Request, product_id: int, db: AsyncSession = Depends(get_db)):
    product = await get_product_by_id(db, product_id)
    if not product:
        return templates.TemplateResponse(request, "admin/not_found.html", {}, status_code=404)
    return _product_form(request, await get_all_categories(db), values=_product_values(product), product_id=product_id)


@router.post("/products/{product_id}/edit", response_class=HTMLResponse)
async def update_product(request: Request, product_id: int, name: str = Form(""), price: str = Form(""),
                         category_id: str = Form(""), image: str = Form(""),
                         db: AsyncSession = Depends(get_db)):
    values = {"name": name, "price": price, "category_id": category_id, "image": image}
    product = await get_product_by_id(db, product_id)
    if not product:
        return templates.TemplateResponse(request, "admin/not_found.html", {}, status_code=404)
    try:
        result = await actions.update_product(db, values, product_id)
    except StorageError:
        return _product_form(request, await get_all_categories(db), values=values, product_id=product_id,
                             errors=[STORAGE_FAILURE], status_code=503)
    if not result.ok:
        return _product_form(request, await get_all_categories(db), values=values, product_id=product_id,
                             errors=[issue.message for issue in result.errors], status_code=400)
    return RedirectResponse(url=result.refresh_path, status_code=303)
