# primavera/routers/menu.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from primavera.dependencies import AdminUser, SessionDep
from primavera.schemas import MenuSearchHit, ProductCreate, ProductRead, ProductUpdate
from primavera.search import MenuIndex, get_menu_index, search_menu
from primavera.services import catalog

router = APIRouter(prefix="/api/menu", tags=["menu"])
admin_router = APIRouter(prefix="/api/admin/menu", tags=["admin"])


@router.get("", response_model=List[ProductRead])
def list_menu(
    session: SessionDep,
    category: Optional[str] = None,
    include_unavailable: bool = False,
):
    """All products on the menu, in menu order"""
    return catalog.list_products(session, category, include_unavailable)


@router.get("/categories", response_model=List[str])
def list_categories(session: SessionDep):
    return catalog.list_categories(session)


@router.get("/search", response_model=List[MenuSearchHit])
def search(
    session: SessionDep,
    q: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    index: Optional[MenuIndex] = Depends(get_menu_index),
):
    """
    Search the menu by meaning ("something spicy") when embeddings are configured,
    by plain text otherwise
    """
    return [
        MenuSearchHit(product=ProductRead.model_validate(product), score=score)
        for product, score in search_menu(session, q, limit, index)
    ]


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, session: SessionDep):
    return catalog.get_product(session, product_id)


# --- Back-office ---

@admin_router.post("", response_model=ProductRead, status_code=201)
def create_product(body: ProductCreate, session: SessionDep, admin: AdminUser):
    return catalog.create_product(session, body)


@admin_router.patch("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, body: ProductUpdate, session: SessionDep, admin: AdminUser):
    return catalog.update_product(session, product_id, body)


@admin_router.post("/{product_id}/toggle-availability", response_model=ProductRead)
def toggle_availability(product_id: int, session: SessionDep, admin: AdminUser):
    return catalog.toggle_availability(session, product_id)


@admin_router.delete("/{product_id}", response_model=ProductRead)
def delete_product(product_id: int, session: SessionDep, admin: AdminUser):
    return catalog.delete_product(session, product_id)
