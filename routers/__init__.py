# API Routers Module
# Exports all modular API routers mounted under /api/v2

from routers.requests import router as requests_router
from routers.contracts import router as contracts_router
from routers.payments import router as payments_router
from routers.availability import router as availability_router
from routers.creators import router as creators_router
from routers.notifications import router as notifications_router

__all__ = [
    'requests_router',
    'contracts_router',
    'payments_router',
    'availability_router',
    'creators_router',
    'notifications_router',
]
