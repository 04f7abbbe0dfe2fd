"""
Request Validation - declarative constraint tables.

Each request body is described by a table mapping field name to its rules:

    type        - "string" | "email" | "number" | "date" | "objectid"
    required    - reject when missing or empty
    trim        - strip surrounding whitespace from strings
    min_length / max_length - string length bounds
    min         - lower bound for numbers
    after       - name of another date field this one must be strictly after
    messages    - per-rule message overrides

``validate()`` interprets a table against a payload and either returns the
cleaned values or raises a single ValidationError naming the first failure.
Fields not declared in the table are dropped.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict

from email_validator import EmailNotValidError, validate_email

from projectify.core.errors import ValidationError

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


# ============================================================
# CONSTRAINT TABLES
# ============================================================

PROJECT_RULES = {
    "name": {
        "type": "string", "required": True, "trim": True, "max_length": 100,
        "messages": {
            "required": "Project name is required",
            "max_length": "Project name cannot be more than 100 characters",
        },
    },
    "description": {
        "type": "string", "required": True, "max_length": 1000,
        "messages": {
            "required": "Project description is required",
            "max_length": "Description cannot be more than 1000 characters",
        },
    },
    "startDate": {
        "type": "date", "required": True,
        "messages": {
            "type": "Start date must be a valid date",
            "required": "Start date is required",
        },
    },
    "endDate": {
        "type": "date", "required": True, "after": "startDate",
        "messages": {
            "type": "End date must be a valid date",
            "required": "End date is required",
            "after": "End date must be after start date",
        },
    },
    "budget": {
        "type": "number", "required": True, "min": 0,
        "messages": {
            "type": "Budget must be a number",
            "required": "Budget is required",
            "min": "Budget cannot be negative",
        },
    },
}

APPLICATION_RULES = {
    "projectId": {
        "type": "objectid", "required": True,
        "messages": {
            "required": "Project ID is required",
            "type": "Invalid project ID format",
        },
    },
}

REGISTRATION_RULES = {
    "name": {
        "type": "string", "required": True, "trim": True, "max_length": 50,
        "messages": {
            "required": "Name is required",
            "max_length": "Name cannot be more than 50 characters",
        },
    },
    "email": {
        "type": "email", "required": True,
        "messages": {
            "required": "Email is required",
            "type": "Please enter a valid email",
        },
    },
    "password": {
        "type": "string", "required": True, "min_length": 6,
        "messages": {
            "required": "Password is required",
            "min_length": "Password must be at least 6 characters",
        },
    },
}

LOGIN_RULES = {
    "email": REGISTRATION_RULES["email"],
    "password": {
        "type": "string", "required": True,
        "messages": {"required": "Password is required"},
    },
}


# ============================================================
# TYPE COERCION
# ============================================================

def _to_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError
    return value


def _to_email(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError
    try:
        return validate_email(value.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError as exc:
        raise ValueError from exc


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        number = float(value.strip())
    else:
        raise ValueError
    # NaN and infinities cannot be stored or encoded as JSON
    if not math.isfinite(number):
        raise ValueError
    return number


def _to_date(value: Any) -> datetime:
    """Parse ISO-8601 dates; aware values are converted to naive UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_objectid(value: Any) -> str:
    if not isinstance(value, str) or not OBJECT_ID_PATTERN.match(value):
        raise ValueError
    return value


COERCERS = {
    "string": _to_string,
    "email": _to_email,
    "number": _to_number,
    "date": _to_date,
    "objectid": _to_objectid,
}

DEFAULT_MESSAGES = {
    "required": '"{field}" is required',
    "type": '"{field}" is invalid',
    "min_length": '"{field}" is too short',
    "max_length": '"{field}" is too long',
    "min": '"{field}" is below the minimum',
    "after": '"{field}" must be after "{other}"',
}


def _fail(field: str, constraints: dict, rule: str):
    message = constraints.get("messages", {}).get(rule)
    if message is None:
        message = DEFAULT_MESSAGES[rule].format(field=field, other=constraints.get("after"))
    raise ValidationError("Validation error", error=message)


def validate(payload: Any, rules: Dict[str, dict]) -> Dict[str, Any]:
    """
    Check a request body against a constraint table.

    Args:
        payload: Decoded JSON body
        rules: One of the *_RULES tables above

    Returns:
        Dict of cleaned, coerced values for declared fields

    Raises:
        ValidationError with ``error`` set to the first failing field message
    """
    if not isinstance(payload, dict):
        raise ValidationError("Validation error", error="Request body must be a JSON object")

    cleaned: Dict[str, Any] = {}

    for field, constraints in rules.items():
        value = payload.get(field)
        if isinstance(value, str) and constraints.get("trim"):
            value = value.strip()

        if value is None or value == "":
            if constraints.get("required"):
                _fail(field, constraints, "required")
            continue

        try:
            value = COERCERS[constraints["type"]](value)
        except (ValueError, TypeError):
            _fail(field, constraints, "type")

        if "min_length" in constraints and len(value) < constraints["min_length"]:
            _fail(field, constraints, "min_length")
        if "max_length" in constraints and len(value) > constraints["max_length"]:
            _fail(field, constraints, "max_length")
        if "min" in constraints and value < constraints["min"]:
            _fail(field, constraints, "min")

        other = constraints.get("after")
        if other and other in cleaned and not value > cleaned[other]:
            _fail(field, constraints, "after")

        cleaned[field] = value

    return cleaned
