"""HTTP client for the external reputation service.

Profiles are read from ``GET {base_url}/agents/{agent_id}``. The service
answers either with the profile object or with ``{"agent": {...}}``;
field names are accepted in snake_case or camelCase.

Constraints:
- 404 means the agent does not exist: zero signals, not an error
- Transport failures and 5xx answers raise ReputationLookupError
- Account age is derived from ``created_at`` when the service does not
  report it directly
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx
from structlog import get_logger

from electorate.application.ports.reputation_lookup import ReputationProfile
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.domain.errors import ReputationLookupError
from electorate.domain.models.agent import ActivitySignals

logger = get_logger(__name__)

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "karma": ("karma", "reputation"),
    "post_count": ("post_count", "postCount", "posts"),
    "comment_count": ("comment_count", "commentCount", "comments"),
    "claimed": ("claimed", "is_claimed", "isClaimed"),
    "account_age_days": ("account_age_days", "accountAgeDays"),
    "twitter_handle": ("twitter_handle", "twitterHandle", "x_handle"),
    "github_handle": ("github_handle", "githubHandle"),
}


def _first(data: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return None


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def profile_from_payload(
    agent_id: str, payload: Mapping[str, Any], now: datetime
) -> ReputationProfile:
    """Normalize a reputation service answer into a ReputationProfile."""
    data = payload.get("agent", payload)
    if not isinstance(data, Mapping):
        data = {}

    raw: dict[str, Any] = {
        field: _first(data, names) for field, names in _FIELD_ALIASES.items()
    }
    if raw["account_age_days"] is None:
        created_at = _parse_timestamp(_first(data, ("created_at", "createdAt")))
        if created_at is not None:
            raw["account_age_days"] = max((now - created_at).days, 0)

    display_name = _first(data, ("display_name", "displayName", "name"))
    return ReputationProfile(
        agent_id=agent_id,
        exists=True,
        display_name=str(display_name) if display_name else None,
        signals=ActivitySignals.from_mapping(raw),
    )


class HttpReputationLookup:
    """ReputationLookupProtocol over httpx.

    Example:
        >>> lookup = HttpReputationLookup(
        ...     base_url="http://localhost:8001/api/v1",
        ...     time_authority=SystemTimeAuthority(),
        ... )
        >>> profile = await lookup.lookup("agent-1")
    """

    def __init__(
        self,
        base_url: str,
        time_authority: TimeAuthorityProtocol,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the lookup.

        Args:
            base_url: Service root, without the ``/agents`` suffix.
            time_authority: Clock for deriving account age.
            timeout_seconds: Per-request timeout.
            client: Shared client; one is opened per lookup when omitted.
        """
        self._base_url = base_url.rstrip("/")
        self._time = time_authority
        self._timeout = timeout_seconds
        self._client = client

    async def lookup(self, agent_id: str) -> ReputationProfile:
        url = f"{self._base_url}/agents/{quote(agent_id, safe='')}"
        log = logger.bind(agent_id=agent_id)

        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, timeout=self._timeout)
        except httpx.HTTPError as e:
            log.warning("reputation_lookup_transport_error", error=str(e))
            raise ReputationLookupError(agent_id, str(e)) from e

        if response.status_code == 404:
            log.info("reputation_profile_not_found")
            return ReputationProfile.missing(agent_id)

        if response.status_code >= 400:
            log.warning("reputation_lookup_failed", status_code=response.status_code)
            raise ReputationLookupError(
                agent_id, f"reputation service answered {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            log.warning("reputation_lookup_bad_payload", error=str(e))
            raise ReputationLookupError(agent_id, "malformed profile payload") from e

        if not isinstance(payload, Mapping):
            log.warning("reputation_lookup_bad_payload", error="not an object")
            raise ReputationLookupError(agent_id, "malformed profile payload")

        profile = profile_from_payload(agent_id, payload, self._time.now())
        log.debug("reputation_profile_loaded", karma=profile.signals.karma)
        return profile
