import logging

from fastapi import FastAPI
from app.database import create_db_and_tables
from app.config import settings
from app.routes import (
    health,
    payments,
    shipments,
    user_library,
    user_orders,
)

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local; elsewhere alembic owns the schema
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Bookstore Fulfillment API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(shipments.router, prefix="/shipments", tags=["Shipments"])
app.include_router(user_orders.router, prefix="/transactions", tags=["Transactions"])
app.include_router(user_library.router, prefix="/library", tags=["Library"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "payment_endpoints": [
            "/payments/confirm", "/payments/webhook", "/payments/status/{order_id}"
        ],
        "shipment_endpoints": [
            "/shipments", "/shipments/{shipment_id}"
        ],
        "customer_endpoints": [
            "/transactions", "/library", "/library/{product_id}/progress"
        ],
    }
