"""
API Version 1 Router.

Combines all API endpoints under /api/v1 prefix.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import categories, payments, storefront, webhooks

router = APIRouter()

# Include endpoint routers
router.include_router(categories.router, prefix="/categories", tags=["Categories"])
router.include_router(storefront.router, prefix="/public", tags=["Storefront"])
router.include_router(payments.router, prefix="/payments", tags=["Payments"])
router.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
