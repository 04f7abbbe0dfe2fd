"""
Project / Application Workflow - state transitions and their side effects.

Both entities move between pending, approved and rejected. Moving an entity to
the status it already has is a no-op: nothing is written and nobody is
notified. Any other move is applied and, once the write has committed,
notifications are handed to the dispatcher:

    project -> approved       one "project-approved" email per applicant
    application -> approved   one "application-approved" email to the applicant
    application -> rejected   one "application-rejected" email to the applicant

Notification problems are logged and never undo or fail the transition.
"""

import logging
from typing import List, Optional, Tuple

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from projectify.core.errors import ConflictError, NotFoundError, ValidationError
from projectify.core.validation import APPLICATION_RULES, PROJECT_RULES, validate
from projectify.schemas.schemas import ApplicationStatus, ProjectStatus
from projectify.services.authorization import (
    Action,
    application_list_filter,
    authorize,
    my_applications_filter,
    project_list_filter,
)
from projectify.services.mongo_service import ApplicationService, ProjectService, to_object_id
from projectify.services.notifications import (
    NotificationDispatcher,
    application_decision_event,
    project_approved_event,
)

logger = logging.getLogger(__name__)

ALREADY_APPLIED = "You have already applied to this project"


class ProjectWorkflow:
    """Project creation, visibility, approval/rejection and cascading delete."""

    def __init__(self, db: Database, notifier: NotificationDispatcher):
        self.projects = ProjectService(db)
        self.applications = ApplicationService(db)
        self.notifier = notifier

    def create(self, caller: dict, payload: dict) -> dict:
        authorize(caller, Action.create_project)
        data = validate(payload, PROJECT_RULES)
        project = self.projects.insert(data, created_by=caller["_id"])
        logger.info("Project %s created by %s", project["_id"], caller["email"])
        return project

    def list_visible(self, caller: dict, status: Optional[str] = None) -> List[dict]:
        authorize(caller, Action.list_projects)
        return self.projects.find(project_list_filter(caller, status))

    def get(self, caller: dict, project_id: str) -> dict:
        project = self._load(project_id)
        authorize(caller, Action.view_project, project)
        return self.projects.populate_creator(project)

    def approve(self, caller: dict, project_id: str) -> Tuple[dict, bool]:
        return self._transition(caller, project_id, ProjectStatus.approved, Action.approve_project)

    def reject(self, caller: dict, project_id: str) -> Tuple[dict, bool]:
        return self._transition(caller, project_id, ProjectStatus.rejected, Action.reject_project)

    def delete(self, caller: dict, project_id: str) -> int:
        """Delete a project and, first, every application referencing it. Returns applications removed."""
        authorize(caller, Action.delete_project)
        project = self._load(project_id)
        removed = self.applications.delete_by_project(project["_id"])
        self.projects.delete(project["_id"])
        logger.info("Project %s deleted with %d application(s)", project["_id"], removed)
        return removed

    def _load(self, project_id: str) -> dict:
        oid = to_object_id(project_id)
        project = self.projects.get_by_id(oid) if oid else None
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def _transition(
        self, caller: dict, project_id: str, target: ProjectStatus, action: Action
    ) -> Tuple[dict, bool]:
        """Returns (project, changed)."""
        authorize(caller, action)
        project = self._load(project_id)
        if project["status"] == target.value:
            return project, False

        updated = self.projects.set_status(project["_id"], target)
        if updated is None:
            # Deleted between the read and the write
            raise NotFoundError("Project not found")
        logger.info(
            "Project %s: %s -> %s", updated["_id"], project["status"], target.value,
            extra={"event": "project_transition", "project_id": str(updated["_id"]), "status": target.value},
        )

        if target == ProjectStatus.approved:
            self._notify_applicants(updated)
        return updated, True

    def _notify_applicants(self, project: dict) -> None:
        try:
            applications = self.applications.find_by_project(project["_id"])
        except PyMongoError:
            logger.exception("Could not load applicants of project %s for notification", project["_id"])
            return
        for application in applications:
            self.notifier.enqueue(project_approved_event(application, project))


class ApplicationWorkflow:
    """Applying to projects and resolving applications."""

    def __init__(self, db: Database, notifier: NotificationDispatcher):
        self.projects = ProjectService(db)
        self.applications = ApplicationService(db)
        self.notifier = notifier

    def create(self, caller: dict, payload: dict) -> dict:
        """
        Apply to a project.

        Guard order: well-formed projectId, project exists, project approved,
        no earlier application by this caller. The unique (projectId, userId)
        index catches a concurrent duplicate that slips past the lookup.
        """
        authorize(caller, Action.create_application)
        data = validate(payload, APPLICATION_RULES)

        project = self.projects.get_by_id(to_object_id(data["projectId"]))
        if project is None:
            raise NotFoundError("Project not found")
        if project["status"] != ProjectStatus.approved.value:
            raise ValidationError("Cannot apply to non-approved projects")
        if self.applications.exists(project["_id"], caller["_id"]):
            raise ConflictError(ALREADY_APPLIED)

        try:
            application = self.applications.insert(project, caller)
        except DuplicateKeyError:
            raise ConflictError(ALREADY_APPLIED)

        logger.info("User %s applied to project %s", caller["email"], project["_id"])
        return application

    def list_mine(self, caller: dict) -> List[dict]:
        authorize(caller, Action.list_my_applications)
        return self.applications.find(my_applications_filter(caller))

    def list_all(self, caller: dict, project_id: Optional[str] = None) -> List[dict]:
        authorize(caller, Action.list_applications)
        project_oid = None
        if project_id:
            project_oid = to_object_id(project_id)
            if project_oid is None:
                raise ValidationError("Validation error", error="Invalid project ID format")
        query = application_list_filter(caller, project_oid)
        return self.applications.find(query, populate_user=True)

    def approve(self, caller: dict, application_id: str) -> Tuple[dict, bool]:
        return self._transition(
            caller, application_id, ApplicationStatus.approved, Action.approve_application
        )

    def reject(self, caller: dict, application_id: str) -> Tuple[dict, bool]:
        return self._transition(
            caller, application_id, ApplicationStatus.rejected, Action.reject_application
        )

    def _transition(
        self, caller: dict, application_id: str, target: ApplicationStatus, action: Action
    ) -> Tuple[dict, bool]:
        authorize(caller, action)
        oid = to_object_id(application_id)
        application = self.applications.get_by_id(oid) if oid else None
        if application is None:
            raise NotFoundError("Application not found")
        if application["status"] == target.value:
            return application, False

        updated = self.applications.set_status(application["_id"], target)
        if updated is None:
            raise NotFoundError("Application not found")
        logger.info(
            "Application %s: %s -> %s", updated["_id"], application["status"], target.value,
            extra={"event": "application_transition", "application_id": str(updated["_id"]), "status": target.value},
        )

        self.notifier.enqueue(
            application_decision_event(updated, approved=target == ApplicationStatus.approved)
        )
        return updated, True
