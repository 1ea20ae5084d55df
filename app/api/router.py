"""
API Router — Combines all endpoint groups under /advisor.

Advisor (14 endpoints):     /api/v1/advisor/{recommendations,optimize,benchmark,statistics,...,health}
"""

from fastapi import APIRouter

from app.api.v1.advisor import router as advisor_router

api_router = APIRouter()

api_router.include_router(
    advisor_router,
    prefix="/advisor",
    tags=["Chart Advisor"],
)
