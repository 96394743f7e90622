"""Time Authority Protocol - interface for consistent timestamp provisioning.

All services that need the current time inject a TimeAuthorityProtocol
implementation instead of calling ``datetime.now()`` directly, so phase
deadlines can be driven deterministically in tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            async def process(self) -> None:
                now = self._time.now()  # NOT datetime.now()
    """

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time.

        Returns:
            Timezone-aware datetime in UTC.
        """
        ...
