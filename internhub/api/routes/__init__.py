"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from internhub.api.routes.auth_routes import router as auth_router
from internhub.api.routes.student_routes import router as student_router
from internhub.api.routes.organization_routes import router as organization_router
from internhub.api.routes.opportunity_routes import router as opportunity_router
from internhub.api.routes.review_routes import router as review_router
from internhub.api.routes.resource_routes import router as resource_router
from internhub.api.routes.forum_routes import router as forum_router
from internhub.api.routes.alert_routes import router as alert_router
from internhub.api.routes.blog_routes import router as blog_router
from internhub.api.routes.contact_routes import router as contact_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(student_router)
api_router.include_router(organization_router)
api_router.include_router(opportunity_router)
api_router.include_router(review_router)
api_router.include_router(resource_router)
api_router.include_router(forum_router)
api_router.include_router(alert_router)
api_router.include_router(blog_router)
api_router.include_router(contact_router)
