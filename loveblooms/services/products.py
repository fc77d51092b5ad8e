# loveblooms/services/products.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..db import get_store
from ..schemas.products import Product, ProductIn
from .timestamps import utcnow

logger = logging.getLogger(__name__)

COLLECTION = "products"


# --- READ HELPERS -------------------------------------------------------------
def list_products(active: Optional[bool] = None,
                  category: Optional[str] = None,
                  featured: Optional[bool] = None) -> List[Product]:
    """
    Catalog list with optional filters; newest first.
    """
    filters = []
    if active is not None:
        filters.append(("isActive", "==", bool(active)))
    if category:
        filters.append(("category", "==", category))
    if featured is not None:
        filters.append(("isFeatured", "==", bool(featured)))

    docs = get_store().query(COLLECTION, filters)
    out = [Product(**d) for d in docs]
    out.sort(key=lambda p: p.createdAt.timestamp() if p.createdAt else 0, reverse=True)
    return out


def get_product(product_id: str) -> Optional[Product]:
    if not product_id:
        return None
    data = get_store().get(COLLECTION, product_id)
    return Product(**data) if data else None


def get_products_map(ids: List[str]) -> Dict[str, Product]:
    """Load the given products by id, skipping ones that no longer exist."""
    out: Dict[str, Product] = {}
    for pid in set(ids):
        p = get_product(pid)
        if p is not None:
            out[pid] = p
    return out


# --- WRITES -------------------------------------------------------------------
def create_product(payload: Dict[str, Any]) -> Product:
    name: str = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")

    slug = payload.get("slug") or _slug(name)
    if get_store().get(COLLECTION, slug):
        raise ValueError(f"product {slug!r} already exists")

    now = utcnow()
    # fill catalog defaults so equality filters (isActive, isFeatured) see every product
    base = {**ProductIn(**payload).model_dump(), "name": name, "slug": slug, "createdAt": now, "updatedAt": now}
    if base.get("stockQuantity") is not None and base["stockQuantity"] <= 0:
        base["inStock"] = False

    saved = get_store().add(COLLECTION, base, doc_id=slug)
    logger.info("product created: %s", slug)
    return Product(**saved)


def update_product(product_id: str, payload: Dict[str, Any]) -> Optional[Product]:
    if not product_id:
        raise ValueError("product_id required")
    store = get_store()
    if store.get(COLLECTION, product_id) is None:
        return None
    patch = {**payload, "updatedAt": utcnow()}
    if patch.get("stockQuantity") is not None and "inStock" not in payload:
        patch["inStock"] = patch["stockQuantity"] > 0
    saved = store.set(COLLECTION, product_id, patch, merge=True)
    return Product(**saved)


def delete_product(product_id: str) -> None:
    if not product_id:
        raise ValueError("product_id required")
    get_store().delete(COLLECTION, product_id)
    logger.info("product deleted: %s", product_id)


# --- UTILS --------------------------------------------------------------------
def _slug(s: str) -> str:
    return (
        s.strip()
        .lower()
        .replace("&", " and ")
        .replace("/", " ")
        .replace("_", " ")
        .encode("ascii", "ignore").decode("ascii")
        .replace("'", "")
        .replace(".", " ")
        .replace(",", " ")
        .replace("  ", " ")
        .strip()
        .replace(" ", "-")
    )
