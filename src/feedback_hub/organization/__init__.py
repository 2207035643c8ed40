"""Organization bounded context: tenants and their memberships."""

from __future__ import annotations

from .models import Membership, Organization, generate_slug, normalize_slug
from .service import OrganizationService
from .store import OrganizationStore

__all__ = [
    "Membership",
    "Organization",
    "OrganizationService",
    "OrganizationStore",
    "generate_slug",
    "normalize_slug",
]
