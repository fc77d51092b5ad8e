# loveblooms/schemas/products.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductImage(BaseModel):
    url: str
    alt: str = ""
    isPrimary: bool = False


class ProductVariant(BaseModel):
    id: str
    name: str
    priceModifier: float = 0.0
    inStock: bool = True


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: str = ""
    longDescription: str = ""
    price: float = Field(..., ge=0)
    compareAtPrice: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None          # roses | mixed-bouquets | luxury | plants | hampers | letterbox
    categoryName: Optional[str] = None
    occasions: List[str] = []
    tags: List[str] = []
    images: List[ProductImage] = []
    variants: List[ProductVariant] = []
    size: Optional[str] = None              # small | medium | large | luxury
    inStock: bool = True
    stockQuantity: Optional[int] = Field(None, ge=0)
    allowsSameDay: bool = True
    allowsNextDay: bool = True
    isFeatured: bool = False
    isActive: bool = True


class ProductPatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    longDescription: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    compareAtPrice: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    categoryName: Optional[str] = None
    occasions: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    images: Optional[List[ProductImage]] = None
    variants: Optional[List[ProductVariant]] = None
    inStock: Optional[bool] = None
    stockQuantity: Optional[int] = Field(None, ge=0)
    isFeatured: Optional[bool] = None
    isActive: Optional[bool] = None


class Product(ProductIn):
    id: str
    slug: str = ""
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    def primary_image(self) -> str:
        for img in self.images:
            if img.isPrimary:
                return img.url
        return self.images[0].url if self.images else ""

    def find_variant(self, variant_id: Optional[str]) -> Optional[ProductVariant]:
        if not variant_id:
            return None
        return next((v for v in self.variants if v.id == variant_id), None)
