"""Per-domain event handler sets.

Each domain reacts to organization lifecycle events through the bus only;
none of them imports another domain's code.
"""

from __future__ import annotations

from .base import ORGANIZATION_LIFECYCLE_TYPES, DomainEventHandlers
from .idea import IdeaEventHandlers
from .recorder import RECORDED_TYPES, EventRecorder
from .role import RoleEventHandlers
from .user import UserEventHandlers

__all__ = [
    "DomainEventHandlers",
    "EventRecorder",
    "IdeaEventHandlers",
    "ORGANIZATION_LIFECYCLE_TYPES",
    "RECORDED_TYPES",
    "RoleEventHandlers",
    "UserEventHandlers",
]
