# loveblooms/routes/products.py
from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..schemas.products import Product, ProductIn, ProductPatch
from ..services.products import (
    list_products,
    get_product,
    create_product,
    update_product,
    delete_product,
)
from .deps import require_admin

router = APIRouter(prefix="/products", tags=["products"])


# GET /products
@router.get("", response_model=List[Product])
def list_products_endpoint(
    active: Optional[bool] = Query(None),
    category: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
):
    return list_products(active=active, category=category, featured=featured)

# GET /products/{id}
@router.get("/{product_id}", response_model=Product)
def get_product_endpoint(product_id: str):
    product = get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="product not found")
    return product

# POST /products
@router.post("", response_model=Product, dependencies=[Depends(require_admin)])
def create_product_endpoint(payload: ProductIn):
    try:
        return create_product(payload.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# PATCH /products/{id}
@router.patch("/{product_id}", response_model=Product, dependencies=[Depends(require_admin)])
def update_product_endpoint(product_id: str, payload: ProductPatch):
    updated = update_product(product_id, payload.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="product not found")
    return updated

# DELETE /products/{id}
@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product_endpoint(product_id: str):
    delete_product(product_id)
    return {"ok": True}
