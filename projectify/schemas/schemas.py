"""
Pydantic Schemas - Enums and Response Envelopes

All API schemas in one file for simplicity. Request bodies are checked by the
constraint tables in ``projectify.core.validation``; these models describe what
the API sends back.
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    admin = "admin"
    user = "user"


class ProjectStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ApplicationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    createdAt: Optional[datetime] = None


class AuthResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    token: str
    token_type: str = "bearer"
    user: UserResponse


class MeResponse(BaseModel):
    success: bool = True
    user: UserResponse


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class HealthResponse(BaseModel):
    status: str
    mongodb: str
