"""
Authorization Gate - who may do what.

The caller is the dict produced by ``get_current_user`` (``_id``, ``name``,
``email``, ``role``). ``authorize`` raises AuthorizationError on denial and
returns None otherwise; the ``*_filter`` helpers build the Mongo query that
scopes a listing to what the caller may see.

Existence is checked by the caller before ``authorize`` is asked about a
specific resource, so a missing id is reported as not found rather than
forbidden.
"""

from enum import Enum
from typing import Optional

from bson import ObjectId

from projectify.core.errors import AuthorizationError, ValidationError
from projectify.schemas.schemas import ProjectStatus, UserRole


class Action(str, Enum):
    list_projects = "list_projects"
    view_project = "view_project"
    create_project = "create_project"
    approve_project = "approve_project"
    reject_project = "reject_project"
    delete_project = "delete_project"
    create_application = "create_application"
    list_my_applications = "list_my_applications"
    list_applications = "list_applications"
    approve_application = "approve_application"
    reject_application = "reject_application"
    view_analytics = "view_analytics"


ADMIN_ONLY = frozenset({
    Action.create_project,
    Action.approve_project,
    Action.reject_project,
    Action.delete_project,
    Action.list_applications,
    Action.approve_application,
    Action.reject_application,
    Action.view_analytics,
})


def is_admin(caller: dict) -> bool:
    return caller.get("role") == UserRole.admin.value


def authorize(caller: dict, action: Action, resource: Optional[dict] = None) -> None:
    """
    Allow or deny ``action`` for ``caller``.

    Args:
        caller: Authenticated user dict
        action: What the caller is attempting
        resource: Target document, for status-dependent rules (view_project)

    Raises:
        AuthorizationError: role or resource status denies the action
    """
    if action in ADMIN_ONLY and not is_admin(caller):
        raise AuthorizationError("Admin access required")

    if action == Action.view_project and not is_admin(caller):
        if resource is None or resource.get("status") != ProjectStatus.approved.value:
            raise AuthorizationError("Access denied")


def project_list_filter(caller: dict, status: Optional[str] = None) -> dict:
    """Admins may filter by any status ("all" or None means no filter); others only see approved."""
    if not is_admin(caller):
        return {"status": ProjectStatus.approved.value}

    if not status or status == "all":
        return {}
    if status not in {s.value for s in ProjectStatus}:
        raise ValidationError("Validation error", error=f"Invalid status filter '{status}'")
    return {"status": status}


def my_applications_filter(caller: dict) -> dict:
    return {"userId": caller["_id"]}


def application_list_filter(caller: dict, project_id: Optional[ObjectId] = None) -> dict:
    """Admin-wide listing, optionally narrowed to one project."""
    authorize(caller, Action.list_applications)
    return {"projectId": project_id} if project_id else {}
