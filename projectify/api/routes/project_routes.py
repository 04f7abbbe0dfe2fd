"""
Project Routes

POST /projects - Create project (admin only, starts pending)
GET /projects - List projects (admins: all or ?status=; users: approved only)
GET /projects/{project_id} - Get project details
PUT /projects/{project_id}/approve - Approve project, notify applicants (admin only)
PUT /projects/{project_id}/reject - Reject project (admin only)
DELETE /projects/{project_id} - Delete project and its applications (admin only)
"""

from fastapi import APIRouter, Body, Depends, Query
from typing import Optional

from projectify.api.dependencies import get_project_workflow
from projectify.core.auth import get_current_user
from projectify.schemas.schemas import MessageResponse
from projectify.services.mongo_service import serialize_doc, serialize_docs
from projectify.services.workflow import ProjectWorkflow

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", status_code=201)
def create_project(
    payload: dict = Body(...),
    user: dict = Depends(get_current_user),
    workflow: ProjectWorkflow = Depends(get_project_workflow),
):
    """Create a new project. Only admins can create projects."""
    project = workflow.create(user, payload)
    return {"success": True, "message": "Project created successfully", "project": serialize_doc(project)}


@router.get("")
def list_projects(
    status: Optional[str] = Query(None, description="pending | approved | rejected | all (admins only)"),
    user: dict = Depends(get_current_user),
    workflow: ProjectWorkflow = Depends(get_project_workflow),
):
    """List projects visible to the caller, newest first."""
    projects = workflow.list_visible(user, status)
    return {"success": True, "projects": serialize_docs(projects)}


@router.get("/{project_id}")
def get_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    workflow: ProjectWorkflow = Depends(get_project_workflow),
):
    """Get a project. Non-admins may only read approved projects."""
    project = workflow.get(user, project_id)
    return {"success": True, "project": serialize_doc(project)}


@router.put("/{project_id}/approve")
def approve_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    workflow: ProjectWorkflow = Depends(get_project_workflow),
):
    """Approve a project. Every applicant gets an email (sent in the background)."""
    project, changed = workflow.approve(user, project_id)
    message = "Project approved successfully" if changed else "Project is already approved"
    return {"success": True, "message": message, "project": serialize_doc(project)}


@router.put("/{project_id}/reject")
def reject_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    workflow: ProjectWorkflow = Depends(get_project_workflow),
):
    """Reject a project."""
    project, changed = workflow.reject(user, project_id)
    message = "Project rejected successfully" if changed else "Project is already rejected"
    return {"success": True, "message": message, "project": serialize_doc(project)}


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    workflow: ProjectWorkflow = Depends(get_project_workflow),
):
    """Delete a project. Cascades to applications."""
    workflow.delete(user, project_id)
    return MessageResponse(message="Project deleted successfully")
