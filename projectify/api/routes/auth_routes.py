"""
Authentication Routes

POST /auth/register - Register new user (and receive a JWT)
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
"""

import logging

from fastapi import APIRouter, Body, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from projectify.api.dependencies import get_app_settings, get_db
from projectify.core.auth import create_access_token, get_current_user, hash_password, verify_password
from projectify.core.config import Settings
from projectify.core.errors import AuthenticationError, ConflictError
from projectify.core.validation import LOGIN_RULES, REGISTRATION_RULES, validate
from projectify.schemas.schemas import AuthResponse, MeResponse, UserResponse, UserRole
from projectify.services.mongo_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _user_response(user: dict) -> UserResponse:
    return UserResponse(
        id=str(user["_id"]), name=user["name"], email=user["email"],
        role=user["role"], createdAt=user.get("createdAt")
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    payload: dict = Body(...),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Register a new account.

    The role is fixed here: emails listed in ADMIN_EMAILS become admins,
    everyone else a regular user.
    """
    data = validate(payload, REGISTRATION_RULES)
    users = UserService(db)

    if users.get_by_email(data["email"]):
        raise ConflictError("Email already registered")

    role = UserRole.admin if data["email"] in settings.admin_email_set else UserRole.user
    try:
        user = users.insert(data["name"], data["email"], hash_password(data["password"]), role.value)
    except DuplicateKeyError:
        raise ConflictError("Email already registered")

    logger.info("Registered %s as %s", user["email"], role.value)
    token = create_access_token({"sub": str(user["_id"]), "role": user["role"]}, settings)
    return AuthResponse(
        message=f"Registered successfully as {role.value}", token=token, user=_user_response(user)
    )


@router.post("/login", response_model=AuthResponse)
def login(
    payload: dict = Body(...),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    data = validate(payload, LOGIN_RULES)
    user = UserService(db).get_by_email(data["email"])

    if not user or not verify_password(data["password"], user["password_hash"]):
        raise AuthenticationError("Invalid email or password")

    token = create_access_token({"sub": str(user["_id"]), "role": user["role"]}, settings)
    return AuthResponse(message="Login successful", token=token, user=_user_response(user))


@router.get("/me", response_model=MeResponse)
def get_me(user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    """Get current authenticated user's info."""
    row = UserService(db).get_by_id(user["_id"])
    return MeResponse(user=_user_response(row))
