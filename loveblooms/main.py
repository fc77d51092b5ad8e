# loveblooms/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import (
    analytics,
    assistant,
    auth,
    cart,
    checkout,
    coupons,
    delivery_zones,
    gift_cards,
    orders,
    products,
)
from .settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Love Blooms FastAPI Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(products.router)
app.include_router(cart.router)
app.include_router(coupons.router)
app.include_router(gift_cards.router)
app.include_router(delivery_zones.router)
app.include_router(checkout.router)
app.include_router(orders.router)
app.include_router(analytics.router)
app.include_router(assistant.router)

@app.get("/")
def root():
    return {"message": "Love Blooms API is running", "store": settings.store_backend}


def run():
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
