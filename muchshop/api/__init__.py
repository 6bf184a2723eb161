# muchshop/api/__init__.py
from fastapi import FastAPI
from muchshop.api.routers import admin_orders, carts, checkout, health, orders, products, users, wishlist


def create_app() -> FastAPI:
    app = FastAPI(
        title="MuchShop",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(wishlist.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)
    app.include_router(admin_orders.router)

    return app
