"""Pydantic schemas for postings.

Two inbound shapes are accepted: the enhanced shape with separate contact
fields and the legacy shape carrying a single free-text ``contactDetails``.
Both validate into :class:`CanonicalPost`. Stored rows come back from the
hosted backend as :class:`PostRecord`.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

URL_PATTERN = re.compile(
    r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&=]*)$",
    re.ASCII,
)
PHONE_PATTERN = re.compile(r"^[+]?[\d\s\-().]{7,}$", re.ASCII)
UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

ROLE_TITLE_MAX = 200
COMPANY_MAX = 100
ROLE_DESC_MAX = 2000
CONTACT_DETAILS_MAX = 500


class RoleType(str, Enum):
    INTERNSHIP = "INTERNSHIP"
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    COLLABORATIVE_PROJECT = "COLLABORATIVE_PROJECT"
    VOLUNTEER = "VOLUNTEER"
    RESEARCH = "RESEARCH"


class ContactMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


def _clean_text(value: str, *, label: str, max_length: int, required: bool = True) -> str:
    """Trim ``value`` and enforce emptiness/length rules on the trimmed text."""
    value = value.strip()
    if required and not value:
        raise PydanticCustomError("required", "{label} is required", {"label": label})
    if len(value) > max_length:
        raise PydanticCustomError(
            "too_long",
            "{label} must be {max_length} characters or less",
            {"label": label, "max_length": max_length},
        )
    return value


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def matches_url(value: str) -> bool:
    return URL_PATTERN.fullmatch(value) is not None


def matches_phone(value: str) -> bool:
    return PHONE_PATTERN.fullmatch(value) is not None


def matches_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    return True


class _CamelModel(BaseModel):
    """Base for inbound shapes: camelCase keys on the wire, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")


class _PostFields(_CamelModel):
    role_title: str
    company: str
    role_type: RoleType
    role_desc: str

    @field_validator("role_title")
    @classmethod
    def _check_role_title(cls, value: str) -> str:
        return _clean_text(value, label="Role title", max_length=ROLE_TITLE_MAX)

    @field_validator("company")
    @classmethod
    def _check_company(cls, value: str) -> str:
        return _clean_text(value, label="Company name", max_length=COMPANY_MAX)

    @field_validator("role_desc")
    @classmethod
    def _check_role_desc(cls, value: str) -> str:
        return _clean_text(value, label="Role description", max_length=ROLE_DESC_MAX)


class LegacyPostInput(_PostFields):
    """Older posting shape: all contact information in one free-text field."""

    contact_details: str

    @field_validator("contact_details")
    @classmethod
    def _check_contact_details(cls, value: str) -> str:
        return _clean_text(value, label="Contact details", max_length=CONTACT_DETAILS_MAX)


class EnhancedPostInput(_PostFields):
    """Current posting shape with structured contact fields."""

    company_url: str | None = None
    contact_email: str
    contact_phone: str | None = None
    preferred_contact_method: ContactMethod = ContactMethod.EMAIL
    contact_details: str | None = ""

    @field_validator("company_url")
    @classmethod
    def _check_company_url(cls, value: str | None) -> str | None:
        value = _blank_to_none(value)
        if value is not None and not matches_url(value):
            raise PydanticCustomError(
                "invalid_url",
                "Please enter a valid URL (e.g., https://company.com)",
            )
        return value

    @field_validator("contact_email")
    @classmethod
    def _check_contact_email(cls, value: str) -> str:
        value = _clean_text(value, label="Contact email", max_length=320)
        if not matches_email(value):
            raise PydanticCustomError("invalid_email", "Please enter a valid email address")
        return value

    @field_validator("contact_phone")
    @classmethod
    def _check_contact_phone(cls, value: str | None) -> str | None:
        value = _blank_to_none(value)
        if value is not None and not matches_phone(value):
            raise PydanticCustomError(
                "invalid_phone",
                "Please enter a valid phone number (e.g., +1 (555) 123-4567)",
            )
        return value

    @field_validator("contact_details")
    @classmethod
    def _check_optional_details(cls, value: str | None) -> str:
        return _clean_text(
            value or "",
            label="Additional contact details",
            max_length=CONTACT_DETAILS_MAX,
            required=False,
        )


class _PostIdField(_CamelModel):
    id: str

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        value = value.strip()
        if UUID_PATTERN.fullmatch(value) is None:
            raise PydanticCustomError("invalid_uuid", "Invalid post ID")
        return value


class LegacyPostEdit(LegacyPostInput, _PostIdField):
    pass


class EnhancedPostEdit(EnhancedPostInput, _PostIdField):
    pass


class CanonicalPost(BaseModel):
    """The single normalized shape persisted for every posting."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    role_title: str
    company: str
    company_url: str | None = None
    role_type: RoleType
    role_desc: str
    contact_email: str
    contact_phone: str | None = None
    preferred_contact_method: ContactMethod = ContactMethod.EMAIL
    contact_details: str = ""

    def to_payload(self) -> dict:
        """Dump as a camelCase JSON-ready dict, leaving absent optionals out."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class PostAuthor(BaseModel):
    name: str | None = None
    email: str


class PostRecord(BaseModel):
    """A posting as stored by the hosted backend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    role_title: str
    company: str
    company_url: str | None = None
    role_type: RoleType
    role_desc: str
    contact_email: str = ""
    contact_phone: str | None = None
    preferred_contact_method: ContactMethod = ContactMethod.EMAIL
    contact_details: str = ""
    is_deleted: bool = False
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    author: PostAuthor | None = Field(
        default=None,
        description="Name and email of the posting's owner.",
    )

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # timestamp columns without a zone come back naive
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Pagination(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool
    has_search: bool
    has_filter: bool


class PostListResponse(BaseModel):
    posts: list[PostRecord] = Field(default_factory=list)
    pagination: Pagination


class UserPostsResponse(BaseModel):
    posts: list[PostRecord] = Field(default_factory=list)


class DeletePostResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    post_id: str
