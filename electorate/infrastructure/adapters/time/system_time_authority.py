"""Wall-clock implementation of the time authority port."""

from __future__ import annotations

from datetime import datetime, timezone

from electorate.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Time authority backed by the system clock, always UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
