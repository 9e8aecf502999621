from typing import Any

from bug_tracker.errors import InvalidInputError
from bug_tracker.models.models import SEVERITIES, STATUSES
from bug_tracker.sanitize import clean_text

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000
PRIORITY_MIN = 1
PRIORITY_MAX = 5

# Public (request/response) field name -> column attribute on models.Bug.
FIELD_COLUMNS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "severity": "severity",
    "status": "status",
    "assignedTo": "assigned_to",
    "priority": "priority",
    "reproducible": "reproducible",
    "tags": "tags",
}

BUG_DEFAULTS: dict[str, Any] = {
    "severity": "medium",
    "status": "open",
    "assignedTo": "Unassigned",
    "priority": 3,
    "reproducible": False,
    "tags": [],
}


def validate_bug_data(data: dict[str, Any]) -> str | None:
    """Check business rules in a fixed order and return the first failure message, or None.

    Length limits apply to the values as supplied; callers pass sanitized input,
    so in practice the values are already trimmed.
    """
    title = data.get("title")
    description = data.get("description")
    severity = data.get("severity")
    status = data.get("status")

    if not isinstance(title, str) or not title.strip():
        return "Title is required"

    if len(title) > TITLE_MAX_LENGTH:
        return f"Title must be less than {TITLE_MAX_LENGTH} characters"

    if not isinstance(description, str) or not description.strip():
        return "Description is required"

    if len(description) > DESCRIPTION_MAX_LENGTH:
        return f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters"

    if severity is not None and severity not in SEVERITIES:
        return f"Severity must be one of: {', '.join(SEVERITIES)}"

    if status is not None and status not in STATUSES:
        return f"Status must be one of: {', '.join(STATUSES)}"

    return None


def known_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Keep only writable public fields that carry a value.

    ``None`` means "not supplied". Every other value, including ``""``, is
    kept and left to validation.
    """
    fields: dict[str, Any] = {}
    for key, value in data.items():
        if key not in FIELD_COLUMNS or value is None:
            continue
        fields[key] = value
    return fields


def _coerce_priority(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def normalize_bug_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Apply the storage schema to public fields and return column values.

    Casts loosely typed input (``"4"`` priority, ``"true"`` flag, a single tag
    string) and collects every failure instead of stopping at the first one.
    Raises InvalidInputError("Validation Error", errors=[...]) when anything fails.
    """
    errors: list[str] = []
    values: dict[str, Any] = {}

    for key, value in data.items():
        column = FIELD_COLUMNS.get(key)
        if column is None:
            continue

        if key == "priority":
            priority = _coerce_priority(value)
            if priority is None:
                errors.append("Priority must be an integer")
            elif priority < PRIORITY_MIN:
                errors.append(f"Priority must be at least {PRIORITY_MIN}")
            elif priority > PRIORITY_MAX:
                errors.append(f"Priority cannot exceed {PRIORITY_MAX}")
            else:
                values[column] = priority
        elif key == "reproducible":
            flag = _coerce_bool(value)
            if flag is None:
                errors.append("Reproducible must be a boolean")
            else:
                values[column] = flag
        elif key == "tags":
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple)) or not all(isinstance(t, str) for t in value):
                errors.append("Tags must be a list of strings")
            else:
                values[column] = [clean_text(t) for t in value]
        elif key == "assignedTo":
            if not isinstance(value, str):
                errors.append("Assigned to must be a string")
            else:
                values[column] = clean_text(value)
        elif key == "severity":
            if value not in SEVERITIES:
                errors.append(f"{value!r} is not a valid severity level")
            else:
                values[column] = value
        elif key == "status":
            if value not in STATUSES:
                errors.append(f"{value!r} is not a valid status")
            else:
                values[column] = value
        else:
            values[column] = value

    if errors:
        raise InvalidInputError("Validation Error", errors=errors)
    return values
