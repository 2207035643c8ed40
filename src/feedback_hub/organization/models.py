"""Organization and membership models.

An organization is a tenant: users, roles and ideas all live inside one.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from feedback_hub.core.errors import ValidationError
from feedback_hub.core.ids import new_id, utc_now

MAX_NAME_LENGTH = 255
MAX_SLUG_LENGTH = 100
MIN_SLUG_LENGTH = 3

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_SLUG_SEPARATORS = re.compile(r"[\s_.,]+")
_SLUG_INVALID = re.compile(r"[^a-z0-9-]")
_SLUG_DASHES = re.compile(r"-{2,}")


def validate_name(name: str) -> None:
    if not name.strip():
        raise ValidationError("organization name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"organization name cannot exceed {MAX_NAME_LENGTH} characters"
        )


def validate_slug(slug: str) -> None:
    if not slug:
        raise ValidationError("organization slug cannot be empty")
    if len(slug) > MAX_SLUG_LENGTH:
        raise ValidationError(
            f"organization slug cannot exceed {MAX_SLUG_LENGTH} characters"
        )
    if not SLUG_PATTERN.match(slug):
        raise ValidationError(
            "organization slug must contain only lowercase letters, numbers, "
            "and single hyphens"
        )


def normalize_slug(slug: str) -> str:
    """Lower-case, turn separators into hyphens, drop anything else."""
    slug = _SLUG_SEPARATORS.sub("-", slug.lower())
    slug = _SLUG_INVALID.sub("", slug)
    slug = _SLUG_DASHES.sub("-", slug).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def generate_slug(name: str) -> str:
    """URL-friendly slug from a display name (``"R&D Team"`` -> ``"randd-team"``)."""
    slug = normalize_slug(name.replace("&", "and"))
    if len(slug) < MIN_SLUG_LENGTH:
        slug = f"org-{slug}" if slug else "org"
    return slug


class Organization(BaseModel):
    """A tenant.  ``version`` increments on every committed change."""

    id: str = Field(default_factory=new_id)
    name: str
    slug: str
    description: str = ""
    settings: dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def new(
        cls,
        name: str,
        slug: str,
        description: str = "",
        settings: dict[str, Any] | None = None,
    ) -> Organization:
        validate_name(name)
        validate_slug(slug)
        return cls(
            name=name,
            slug=slug,
            description=description,
            settings=dict(settings or {}),
        )

    @property
    def is_active(self) -> bool:
        """Active unless ``settings["active"]`` is explicitly ``False``."""
        active = self.settings.get("active")
        return active if isinstance(active, bool) else True


class Membership(BaseModel):
    """A user's membership in one organization, with the role they hold."""

    id: str = Field(default_factory=new_id)
    organization_id: str
    user_id: str
    role_id: str
    role_name: str = ""
    is_active: bool = True
    version: int = 1
    joined_at: datetime = Field(default_factory=utc_now)
