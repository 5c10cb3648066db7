from contextlib import asynccontextmanager
from typing import Any, Dict
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_payment_service
from bepawa.api.v1.api import api_router
from bepawa.core.config import settings
from bepawa.core.exceptions import BaseCustomException, register_exception_handlers
from bepawa.domain.orders.service import OrderService
from bepawa.infrastructure.database import close_db, get_db, init_db
from bepawa.infrastructure.payments import PaymentError, PaymentService
from bepawa.infrastructure.redis import redis_manager

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    try:
        await redis_manager.connect(settings.REDIS_URL)
    except Exception as e:
        # Client storage endpoints answer 503 until Redis is reachable
        logger.warning(f"Starting without Redis: {e}")
    yield
    await redis_manager.disconnect()
    await close_db()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    return {"status": "ok", "redis": await redis_manager.is_healthy()}


@app.post("/api/create-checkout-session")
async def create_checkout_session(
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
):
    """Open a Stripe Checkout page; errors come back as ``{"error": ...}``"""
    try:
        payload: Dict[str, Any] = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    try:
        return await payments.create_checkout_session(payload)
    except PaymentError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})


@app.post("/api/stripe-webhook")
async def stripe_webhook(
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
    db: AsyncSession = Depends(get_db),
):
    payload = await request.body()
    try:
        event = payments.construct_event(payload, request.headers.get("stripe-signature"))
    except PaymentError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    if event["type"] == "checkout.session.completed":
        session = event["data"]["object"]
        order_id = (session.get("metadata") or {}).get("order_id")
        if order_id:
            try:
                await OrderService(db).mark_paid(order_id, session.get("amount_total"))
            except BaseCustomException as e:
                # Acknowledge anyway; redelivery cannot fix an unknown order or a wrong amount
                logger.error(f"Could not settle order {order_id}: {e.message}")
        else:
            logger.warning(f"Checkout session {session.get('id')} has no order_id metadata")
    else:
        logger.debug(f"Ignoring Stripe event {event['type']}")

    return {"received": True}
