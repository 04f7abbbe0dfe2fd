"""
Analytics Routes (admin only)

GET /analytics/dashboard - Totals, user split and 6-month application histogram
GET /analytics/projects-by-status - Project counts per status
GET /analytics/applications-by-status - Application counts per status
GET /analytics/recent-activity - Latest projects and applications
"""

from fastapi import APIRouter, Depends, Query

from projectify.api.dependencies import get_analytics_service
from projectify.core.auth import get_current_user
from projectify.services.analytics_service import AnalyticsService
from projectify.services.authorization import Action, authorize
from projectify.services.mongo_service import serialize_doc

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/dashboard")
def dashboard(
    user: dict = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    authorize(user, Action.view_analytics)
    return {"success": True, "data": service.dashboard()}


@router.get("/projects-by-status")
def projects_by_status(
    user: dict = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    authorize(user, Action.view_analytics)
    return {"success": True, "data": service.projects_by_status()}


@router.get("/applications-by-status")
def applications_by_status(
    user: dict = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    authorize(user, Action.view_analytics)
    return {"success": True, "data": service.applications_by_status()}


@router.get("/recent-activity")
def recent_activity(
    limit: int = Query(10, ge=1, le=50),
    user: dict = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Newest projects and applications with their references resolved."""
    authorize(user, Action.view_analytics)
    return {"success": True, "data": serialize_doc(service.recent_activity(limit))}
