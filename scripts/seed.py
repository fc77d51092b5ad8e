"""
Seed the store with the starter catalog, coupons and delivery zones.

    python -m scripts.seed                 # everything
    python -m scripts.seed --only zones    # one collection
    STORE_BACKEND=memory python -m scripts.seed --dry-run
"""
import argparse
import logging

from loveblooms.errors import DuplicateCode
from loveblooms.services.coupons import create_coupon
from loveblooms.services.delivery import create_zone, list_zones
from loveblooms.services.products import create_product, get_product, _slug
from loveblooms.settings import settings

logger = logging.getLogger("seed")

PRODUCTS = [
    {
        "name": "Velvet Red Romance",
        "description": "A breathtaking dozen of premium long-stem red roses, symbolising deep love and passion.",
        "price": 89.99,
        "compareAtPrice": 109.99,
        "category": "roses",
        "categoryName": "Roses",
        "occasions": ["romance", "anniversary", "birthday"],
        "tags": ["red roses", "romance", "luxury", "bestseller"],
        "images": [{"url": "https://images.unsplash.com/photo-1490750967868-88aa4f44baee?w=800&q=80",
                    "alt": "Velvet Red Romance bouquet", "isPrimary": True}],
        "variants": [
            {"id": "v1", "name": "Standard (12 stems)", "priceModifier": 0, "inStock": True},
            {"id": "v2", "name": "Deluxe (24 stems)", "priceModifier": 45, "inStock": True},
            {"id": "v3", "name": "Luxury (50 stems)", "priceModifier": 110, "inStock": True},
        ],
        "size": "medium",
        "stockQuantity": 50,
        "isFeatured": True,
    },
    {
        "name": "Blush Pink Elegance",
        "description": "Delicate pink roses in graduating shades, a vision of grace and femininity.",
        "price": 74.99,
        "category": "roses",
        "categoryName": "Roses",
        "occasions": ["birthday", "thank-you", "romance"],
        "tags": ["pink roses", "elegant", "feminine"],
        "images": [{"url": "https://images.unsplash.com/photo-1490750967868-88aa4f44baee?w=800&q=80",
                    "alt": "Blush Pink Elegance", "isPrimary": True}],
        "size": "medium",
        "stockQuantity": 35,
    },
    {
        "name": "Peaceful White Lilies",
        "description": "Serene white lilies and roses, a gentle tribute of comfort and remembrance.",
        "price": 64.99,
        "category": "mixed-bouquets",
        "categoryName": "Mixed Bouquets",
        "occasions": ["sympathy"],
        "tags": ["lilies", "white", "sympathy"],
        "size": "large",
        "stockQuantity": 12,
        "allowsSameDay": False,
    },
    {
        "name": "Letterbox Sunshine",
        "description": "Bright seasonal stems that fit through the letterbox, ready to arrange.",
        "price": 29.99,
        "category": "letterbox",
        "categoryName": "Letterbox Flowers",
        "occasions": ["thank-you", "just-because"],
        "tags": ["letterbox", "seasonal", "yellow"],
        "size": "small",
        "stockQuantity": 80,
    },
]

COUPONS = [
    {"code": "WELCOME15", "description": "15% off your first order", "discountType": "percentage",
     "discountValue": 15, "minimumOrder": 30, "maxUses": 1000, "isActive": True},
    {"code": "SPRING10", "description": "£10 off orders over £60", "discountType": "fixed_amount",
     "discountValue": 10, "minimumOrder": 60, "maxUses": 500, "isActive": True},
    {"code": "FREEDEL", "description": "Free delivery on any order", "discountType": "free_delivery",
     "discountValue": 0, "isActive": True},
]

ZONES = [
    {"name": "Greater London", "postcodes": ["E", "EC", "N", "NW", "SE", "SW", "W", "WC"],
     "sameDayAvailable": True, "deliveryFee": 5.99, "freeDeliveryThreshold": 50},
    {"name": "South East England", "postcodes": ["BN", "CT", "GU", "ME", "OX", "RG", "SL", "TN"],
     "deliveryFee": 5.99, "freeDeliveryThreshold": 50},
    {"name": "Midlands", "postcodes": ["B", "CV", "DE", "LE", "NG", "NN", "ST", "WS", "WV"],
     "deliveryFee": 5.99, "freeDeliveryThreshold": 50},
    {"name": "North West", "postcodes": ["L", "M", "WA", "WN", "BL", "OL", "SK", "CW"],
     "deliveryFee": 5.99, "freeDeliveryThreshold": 50},
    {"name": "Scotland", "postcodes": ["EH", "G", "FK", "KY", "DD"],
     "deliveryFee": 7.99, "freeDeliveryThreshold": 75},
]


def seed_products(dry_run: bool) -> int:
    n = 0
    for p in PRODUCTS:
        if get_product(_slug(p["name"])):
            logger.info("product %s exists, skipped", p["name"])
            continue
        if not dry_run:
            create_product(p)
        n += 1
    return n


def seed_coupons(dry_run: bool) -> int:
    n = 0
    for c in COUPONS:
        if dry_run:
            n += 1
            continue
        try:
            create_coupon(c)
            n += 1
        except DuplicateCode:
            logger.info("coupon %s exists, skipped", c["code"])
    return n


def seed_zones(dry_run: bool) -> int:
    existing = {z.name for z in list_zones()}
    n = 0
    for z in ZONES:
        if z["name"] in existing:
            logger.info("zone %s exists, skipped", z["name"])
            continue
        if not dry_run:
            create_zone(z)
        n += 1
    return n


SEEDERS = {"products": seed_products, "coupons": seed_coupons, "zones": seed_zones}

if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--only", choices=sorted(SEEDERS), help="Seed a single collection")
    ap.add_argument("--dry-run", action="store_true", help="Report what would be written")
    args = ap.parse_args()

    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(message)s")
    for name, fn in SEEDERS.items():
        if args.only and name != args.only:
            continue
        count = fn(args.dry_run)
        print(f"{name}: {count} {'would be ' if args.dry_run else ''}written ({settings.store_backend})")
