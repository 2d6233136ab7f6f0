from .health import router as health_router
from .notifications import router as notifications_router
from .payments import router as payments_router
from .uploads import router as uploads_router

__all__ = [
    "health_router",
    "notifications_router",
    "payments_router",
    "uploads_router",
]
