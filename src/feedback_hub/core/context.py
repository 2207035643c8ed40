"""EventContext: the advisory cancellation carrier handed to every handler.

The bus forwards the caller's context untouched.  It never checks
cancellation or deadlines itself; handlers that do slow work may poll
``ctx.done()`` and bail out early.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .ids import new_id, utc_now


@dataclass(frozen=True)
class EventContext:
    """Correlation id plus an optional deadline and a cancel flag."""

    correlation_id: str = field(default_factory=new_id)
    deadline: datetime | None = None
    _cancelled: threading.Event = field(
        default_factory=threading.Event, repr=False, compare=False,
    )

    @classmethod
    def background(cls) -> EventContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    @classmethod
    def with_timeout(
        cls, seconds: float, correlation_id: str | None = None,
    ) -> EventContext:
        deadline = utc_now() + timedelta(seconds=seconds)
        if correlation_id is None:
            return cls(deadline=deadline)
        return cls(correlation_id=correlation_id, deadline=deadline)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and utc_now() >= self.deadline

    def done(self) -> bool:
        """True once the context is cancelled or past its deadline."""
        return self.cancelled or self.expired
