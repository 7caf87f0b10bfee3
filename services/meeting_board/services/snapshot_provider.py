"""
Meeting snapshot provider backed by the event matchmaking REST API.

Every endpoint answers with the same envelope::

    {"version": ..., "statusCode": 200, "message": "...", "isError": false,
     "result": [ ...meeting records... ]}

Visitors and exhibitors read their meetings from different endpoints. The
records are projected for the viewer before they are cached, so the cache
always holds ready-to-classify snapshots.
"""

from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from services.common.http_errors import (
    ErrorCode,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from services.common.logging_config import get_logger, request_id_var
from services.meeting_board.schemas import ApiEnvelope, Meeting, ViewerRole
from services.meeting_board.services.projection import project_snapshot
from services.meeting_board.services.snapshot_cache import (
    RedisSnapshotCache,
    SnapshotCache,
    snapshot_cache_key,
)
from services.meeting_board.settings import get_settings

logger = get_logger(__name__)

PROVIDER_NAME = "matchmaking"

# (path suffix, query parameter) per viewer role
ROLE_ENDPOINTS: Dict[ViewerRole, tuple[str, str]] = {
    ViewerRole.visitor: ("Meeting/getVisitortorMeetingDetails", "visitorId"),
    ViewerRole.exhibitor: ("Meeting/getExhibitorMeetingDetails", "exhibitorId"),
}


def _resolve_role(viewer_role: Union[ViewerRole, str]) -> ViewerRole:
    try:
        return ViewerRole(str(getattr(viewer_role, "value", viewer_role)).lower())
    except ValueError:
        raise ValidationError(
            f"Unknown viewer role: {viewer_role}",
            field="role",
            value=viewer_role,
        )


class MeetingSnapshotProvider:
    """
    Fetches and caches per-viewer meeting snapshots.

    Args:
        base_url: Matchmaking API base URL
        token: Optional bearer token
        timeout: Request timeout in seconds
        cache: Snapshot cache; snapshots are not cached when omitted
        ttl_seconds: How long fetched snapshots stay cached
        client: Optional shared ``httpx.AsyncClient`` (not closed by the provider)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        cache: Optional[SnapshotCache] = None,
        ttl_seconds: int = 300,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self._client = client

    @classmethod
    def from_settings(cls, cache: Optional[SnapshotCache] = None) -> "MeetingSnapshotProvider":
        settings = get_settings()
        return cls(
            base_url=settings.matchmaking_api_url,
            token=settings.matchmaking_api_token,
            timeout=settings.matchmaking_api_timeout,
            cache=cache if cache is not None else RedisSnapshotCache(settings.redis_url),
            ttl_seconds=settings.snapshot_cache_ttl_seconds,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        # Propagate request ID for distributed tracing
        request_id = request_id_var.get()
        if request_id and request_id != "uninitialized":
            headers["X-Request-Id"] = request_id
        return headers

    async def _get(self, url: str, params: Dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params, headers=self._headers())
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=params, headers=self._headers())

    async def fetch_meetings(
        self,
        event_identifier: str,
        viewer_id: Union[str, int],
        viewer_role: Union[ViewerRole, str] = ViewerRole.visitor,
        use_cache: bool = True,
    ) -> List[Meeting]:
        """
        Return the viewer's meeting snapshot for one event.

        Args:
            event_identifier: Event identifier used in the API path
            viewer_id: Visitor or exhibitor id
            viewer_role: Which endpoint family to read from
            use_cache: Skip the cache lookup when False (the result is still stored)

        Returns:
            Projected meetings, in API order

        Raises:
            ValidationError: Unknown viewer role
            NotFoundError: The matchmaking API does not know the event
            ProviderError: Transport failure, HTTP error or an error envelope
        """
        role = _resolve_role(viewer_role)
        viewer = str(viewer_id)
        key = snapshot_cache_key(event_identifier, role.value, viewer)

        if use_cache and self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                return cached

        path, param = ROLE_ENDPOINTS[role]
        url = f"{self.base_url}/api/{event_identifier}/{path}"
        try:
            response = await self._get(url, {param: viewer})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"HTTP error from matchmaking API: {e.response.status_code}",
                event_identifier=event_identifier,
                viewer_id=viewer,
                status_code=e.response.status_code,
            )
            if e.response.status_code == 404:
                raise NotFoundError(
                    "Event",
                    event_identifier,
                    details={"provider": PROVIDER_NAME},
                )
            raise ProviderError(
                "Matchmaking API returned an error status",
                provider=PROVIDER_NAME,
                code=ErrorCode.PROVIDER_ERROR,
                response_body=e.response.text[:500],
                details={"status_code": e.response.status_code},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                f"Failed to fetch meetings from matchmaking API: {e}",
                event_identifier=event_identifier,
                viewer_id=viewer,
            )
            raise ProviderError(
                "Matchmaking API is unavailable",
                provider=PROVIDER_NAME,
                code=ErrorCode.PROVIDER_UNAVAILABLE,
                details={"error": str(e)},
            )

        records = self._unwrap(payload, event_identifier, viewer)
        meetings = project_snapshot(records, viewer)
        if self.cache is not None:
            await self.cache.put(key, meetings, self.ttl_seconds)
        logger.info(
            "Fetched meeting snapshot",
            event_identifier=event_identifier,
            viewer_id=viewer,
            role=role.value,
            meeting_count=len(meetings),
        )
        return meetings

    def _unwrap(self, payload: Any, event_identifier: str, viewer: str) -> List[Dict[str, Any]]:
        try:
            envelope = ApiEnvelope.model_validate(payload)
        except PydanticValidationError:
            raise ProviderError(
                "Matchmaking API returned an unexpected payload",
                provider=PROVIDER_NAME,
                details={"event_identifier": event_identifier, "viewer_id": viewer},
            )
        if envelope.is_error or (envelope.status_code or 200) >= 400:
            raise ProviderError(
                envelope.message or "Matchmaking API reported an error",
                provider=PROVIDER_NAME,
                details={"status_code": envelope.status_code},
            )
        result = envelope.result
        if result is None:
            return []
        if isinstance(result, dict):
            return [result]
        if not isinstance(result, list):
            raise ProviderError(
                "Matchmaking API result is not a list of meetings",
                provider=PROVIDER_NAME,
            )
        return [record for record in result if isinstance(record, dict)]


_provider: Optional[MeetingSnapshotProvider] = None


def get_snapshot_provider() -> MeetingSnapshotProvider:
    global _provider
    if _provider is None:
        _provider = MeetingSnapshotProvider.from_settings()
    return _provider


async def close_snapshot_provider() -> None:
    """Release the shared provider's Redis connection."""
    global _provider
    if _provider is not None and isinstance(_provider.cache, RedisSnapshotCache):
        await _provider.cache.close()
    _provider = None
