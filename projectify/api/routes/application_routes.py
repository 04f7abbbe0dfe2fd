"""
Application Routes

POST /applications - Apply to an approved project
GET /applications/my - Get my applications (project summary included)
GET /applications - Get all applications, optional ?projectId= (admin only)
PUT /applications/{application_id}/approve - Approve application (admin only)
PUT /applications/{application_id}/reject - Reject application (admin only)
"""

from fastapi import APIRouter, Body, Depends, Query
from typing import Optional

from projectify.api.dependencies import get_application_workflow
from projectify.core.auth import get_current_user
from projectify.services.mongo_service import serialize_doc, serialize_docs
from projectify.services.workflow import ApplicationWorkflow

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", status_code=201)
def create_application(
    payload: dict = Body(...),
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """Apply to a project. Only approved projects accept applications; one per user."""
    application = workflow.create(user, payload)
    return {
        "success": True,
        "message": "Application submitted successfully",
        "application": serialize_doc(application),
    }


@router.get("/my")
def my_applications(
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """Applications submitted by the current user, newest first."""
    return {"success": True, "applications": serialize_docs(workflow.list_mine(user))}


@router.get("")
def list_applications(
    project_id: Optional[str] = Query(None, alias="projectId"),
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """All applications with project and applicant summaries."""
    return {"success": True, "applications": serialize_docs(workflow.list_all(user, project_id))}


@router.put("/{application_id}/approve")
def approve_application(
    application_id: str,
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """Approve an application and email the applicant."""
    application, changed = workflow.approve(user, application_id)
    message = "Application approved successfully" if changed else "Application is already approved"
    return {"success": True, "message": message, "application": serialize_doc(application)}


@router.put("/{application_id}/reject")
def reject_application(
    application_id: str,
    user: dict = Depends(get_current_user),
    workflow: ApplicationWorkflow = Depends(get_application_workflow),
):
    """Reject an application and email the applicant."""
    application, changed = workflow.reject(user, application_id)
    message = "Application rejected successfully" if changed else "Application is already rejected"
    return {"success": True, "message": message, "application": serialize_doc(application)}
