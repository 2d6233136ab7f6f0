from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# ------------------------------------------------------------
# Load .env from PROJECT ROOT
# ------------------------------------------------------------
load_dotenv(dotenv_path=Path(__file__).resolve().parents[2] / ".env")

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from packages.features.bookings.router import router as bookings_router
from packages.features.countries.router import router as countries_router
from packages.features.featured_videos.router import router as featured_videos_router
from packages.features.homepage.router import router as homepage_router
from packages.features.promo_banners.router import router as promo_banners_router
from packages.features.reviews.router import router as reviews_router
from packages.features.tours.router import router as tours_router
from packages.features.users.router import router as users_router
from packages.features.visa.router import router as visa_router
from services.gateway.auth import secret_is_default
from services.gateway.errors import install_error_handlers
from services.gateway.logging_setup import setup_logging
from services.gateway.routers import (
    health_router,
    notifications_router,
    payments_router,
    uploads_router,
)
from services.gateway.routers.health import services_status

logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://localhost:3002",
    "https://discovergrp.netlify.app",
]


def cors_origins() -> list[str]:
    raw = (os.getenv("CORS_ORIGINS") or "").strip()
    if not raw:
        return DEFAULT_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    status = services_status()
    logger.info(
        "Vendors: stripe=%s paymongo=%s email=%s storage=%s",
        "on" if status["stripe"] else "off",
        "on" if status["paymongo"] else "off",
        status["email"],
        status["storageProvider"],
    )
    if secret_is_default():
        logger.warning("JWT_SECRET is not set; using the insecure default. Set it before deploying.")
    yield


app = FastAPI(title="Discover Group API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Routers
app.include_router(health_router)
app.include_router(users_router)
app.include_router(tours_router)
app.include_router(countries_router)
app.include_router(bookings_router)
app.include_router(reviews_router)
app.include_router(promo_banners_router)
app.include_router(homepage_router)
app.include_router(featured_videos_router)
app.include_router(visa_router)
app.include_router(uploads_router)
app.include_router(payments_router)
app.include_router(notifications_router)
