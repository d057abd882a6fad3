"""Validation and legacy/enhanced reconciliation for posting payloads.

Inbound payloads come in two overlapping shapes. :func:`classify_shape`
decides which one a payload is, the matching schema validates it, and legacy
payloads are then normalized into the canonical shape. Bad input never
raises: callers get a :class:`PostValidationResult` listing every violated
rule.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from wescollab.schemas.post import (
    CanonicalPost,
    ContactMethod,
    EnhancedPostEdit,
    EnhancedPostInput,
    LegacyPostEdit,
    LegacyPostInput,
    matches_email,
    matches_phone,
    matches_url,
)

logger = logging.getLogger(__name__)

# Keys whose presence marks a payload as the enhanced shape
ENHANCED_MARKER_KEYS = ("contactEmail", "companyUrl")

FIELD_LABELS = {
    "id": "Post ID",
    "roleTitle": "Role title",
    "company": "Company name",
    "companyUrl": "Company URL",
    "roleType": "Role type",
    "roleDesc": "Role description",
    "contactEmail": "Contact email",
    "contactPhone": "Contact phone",
    "preferredContactMethod": "Preferred contact method",
    "contactDetails": "Contact details",
}


class PostShape(str, Enum):
    LEGACY = "legacy"
    ENHANCED = "enhanced"


class ValidationMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


_SCHEMAS: dict[tuple[PostShape, ValidationMode], type[BaseModel]] = {
    (PostShape.LEGACY, ValidationMode.CREATE): LegacyPostInput,
    (PostShape.LEGACY, ValidationMode.EDIT): LegacyPostEdit,
    (PostShape.ENHANCED, ValidationMode.CREATE): EnhancedPostInput,
    (PostShape.ENHANCED, ValidationMode.EDIT): EnhancedPostEdit,
}


@dataclass(frozen=True)
class FieldError:
    """One violated rule, reported to clients verbatim."""

    field: str
    message: str
    code: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass
class PostValidationResult:
    """Outcome of :func:`validate_post`: a canonical post or a list of errors."""

    shape: PostShape
    canonical: CanonicalPost | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.canonical is not None and not self.errors


def classify_shape(payload: Mapping[str, Any]) -> PostShape:
    """Return ENHANCED when any enhanced-only key is present, else LEGACY.

    Only key presence matters: ``{"companyUrl": ""}`` is still enhanced.
    """
    if any(key in payload for key in ENHANCED_MARKER_KEYS):
        return PostShape.ENHANCED
    return PostShape.LEGACY


def format_validation_errors(error: ValidationError) -> list[FieldError]:
    """Flatten a pydantic ValidationError into ``FieldError`` entries.

    Args:
        error: The pydantic error raised by one of the posting schemas.

    Returns:
        One entry per failed rule, in pydantic's reporting order.
    """
    formatted: list[FieldError] = []
    for err in error.errors(include_url=False):
        field_name = ".".join(str(part) for part in err["loc"])
        code = err["type"]
        message = err["msg"]
        if code == "missing":
            message = f"{FIELD_LABELS.get(field_name, field_name)} is required"
        formatted.append(FieldError(field=field_name, message=message, code=code))
    return formatted


def legacy_to_canonical(legacy: LegacyPostInput) -> CanonicalPost:
    """Normalize a validated legacy posting into the canonical shape.

    The free-text contact details become the contact email as-is. They are
    not re-checked for email syntax, so previously accepted legacy data keeps
    round-tripping.
    """
    fields = legacy.model_dump(exclude={"contact_details"})
    return CanonicalPost(
        **fields,
        contact_email=legacy.contact_details,
        contact_phone=None,
        preferred_contact_method=ContactMethod.EMAIL,
        company_url=None,
        contact_details="",
    )


def canonical_to_legacy(post: CanonicalPost) -> dict[str, Any]:
    """Project a canonical posting onto the legacy wire shape."""
    return {
        "roleTitle": post.role_title,
        "company": post.company,
        "roleType": post.role_type.value,
        "roleDesc": post.role_desc,
        "contactDetails": post.contact_email or post.contact_details or "",
    }


def validate_post(
    payload: Any,
    mode: ValidationMode = ValidationMode.CREATE,
) -> PostValidationResult:
    """Validate a create/edit payload and return its canonical form.

    Args:
        payload: Raw decoded JSON body. Edit payloads must already carry ``id``.
        mode: CREATE, or EDIT which additionally requires a UUID-shaped ``id``.

    Returns:
        PostValidationResult with ``canonical`` set on success, or ``errors``
        listing every violated rule.
    """
    if not isinstance(payload, Mapping):
        return PostValidationResult(
            shape=PostShape.LEGACY,
            errors=[
                FieldError(
                    field="body",
                    message="Request body must be a JSON object",
                    code="invalid_body",
                )
            ],
        )

    shape = classify_shape(payload)
    schema = _SCHEMAS[(shape, mode)]

    try:
        validated = schema.model_validate(payload)
    except ValidationError as exc:
        errors = format_validation_errors(exc)
        logger.info(
            "post.validation_failed",
            extra={
                "shape": shape.value,
                "mode": mode.value,
                "fields": sorted({e.field for e in errors}),
            },
        )
        return PostValidationResult(shape=shape, errors=errors)

    if shape is PostShape.LEGACY:
        canonical = legacy_to_canonical(validated)  # type: ignore[arg-type]
    else:
        canonical = CanonicalPost.model_validate(validated.model_dump())

    return PostValidationResult(shape=shape, canonical=canonical)


def is_valid_url(url: str) -> bool:
    return matches_url(url)


def is_valid_phone(phone: str) -> bool:
    return matches_phone(phone)


def is_valid_email(email: str) -> bool:
    return matches_email(email)


def is_valid_contact_method(method: str) -> bool:
    return method in {m.value for m in ContactMethod}
