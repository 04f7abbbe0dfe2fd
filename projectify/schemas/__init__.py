"""
Schemas module - enums shared by services and the API response contract.
"""

from projectify.schemas.schemas import ApplicationStatus, ProjectStatus, UserRole

__all__ = ["ApplicationStatus", "ProjectStatus", "UserRole"]
