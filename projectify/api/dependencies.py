"""FastAPI dependency injection setup.

Collaborators are built once in ``create_app`` and stored on ``app.state``;
these providers hand them to route handlers.
"""

from fastapi import Request
from pymongo.database import Database

from projectify.core.config import Settings
from projectify.services.analytics_service import AnalyticsService
from projectify.services.notifications import NotificationDispatcher
from projectify.services.workflow import ApplicationWorkflow, ProjectWorkflow


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifier(request: Request) -> NotificationDispatcher:
    return request.app.state.notifier


def get_project_workflow(request: Request) -> ProjectWorkflow:
    return ProjectWorkflow(get_db(request), get_notifier(request))


def get_application_workflow(request: Request) -> ApplicationWorkflow:
    return ApplicationWorkflow(get_db(request), get_notifier(request))


def get_analytics_service(request: Request) -> AnalyticsService:
    return AnalyticsService(get_db(request))
