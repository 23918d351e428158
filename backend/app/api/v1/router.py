"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, pnr, buddies, offers,
    users, trains, payments, admin
)

router = APIRouter()

# Phone/OTP authentication
router.include_router(auth.router)

# PNR lookup (writes verified journeys)
router.include_router(pnr.router)

# Matching: buddies and seat offers
router.include_router(buddies.router)
router.include_router(offers.router)

# Profiles
router.include_router(users.router)

# Train information
router.include_router(trains.router)

# Premium (stub)
router.include_router(payments.router)

# Admin JSON API
router.include_router(admin.router)
