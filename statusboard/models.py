"""Data models for endpoint status payloads and derived dashboard state."""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class PayloadError(ValueError):
    """Raised when a status payload cannot be parsed into the data model."""

    pass


# The server emits up to nine fractional digits; datetime keeps six.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Naive values are assumed to be UTC. Fractional seconds beyond microsecond
    precision (the server sends nanoseconds) are truncated.

    Raises:
        PayloadError: If the value is not a valid timestamp.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if not isinstance(value, str) or not value:
        raise PayloadError(f"Invalid timestamp: {value!r}")
    try:
        parsed = datetime.fromisoformat(_FRACTION_RE.sub(r"\1", value))
    except ValueError:
        raise PayloadError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _require_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise PayloadError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _optional_list(data: dict, key: str, what: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PayloadError(f"{what}.{key} must be a list")
    return value


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of a single condition evaluated against a result."""

    condition: str
    success: bool

    @classmethod
    def from_dict(cls, data: Any) -> "ConditionResult":
        data = _require_dict(data, "conditionResult")
        return cls(condition=str(data.get("condition", "")), success=bool(data.get("success", False)))


@dataclass(frozen=True)
class Result:
    """One completed health check of an endpoint.

    Attributes:
        timestamp: When the check was sent.
        success: Whether the check passed all of its conditions.
        duration: Time the check took, in nanoseconds.
        status: HTTP status code, or None when not applicable.
        condition_results: Per-condition outcomes.
        errors: Error strings collected during the check.
        hostname: Hostname extracted from the endpoint URL, if any.
        state: Explicit state name (e.g. "maintenance"); when None the state
            is derived from the success flag.
    """

    timestamp: datetime
    success: bool
    duration: int = 0
    status: int | None = None
    condition_results: tuple[ConditionResult, ...] = ()
    errors: tuple[str, ...] = ()
    hostname: str | None = None
    state: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "Result":
        data = _require_dict(data, "result")
        try:
            duration = int(data.get("duration") or 0)
        except (TypeError, ValueError):
            raise PayloadError(f"Invalid result duration: {data.get('duration')!r}")
        status = data.get("status")
        return cls(
            timestamp=parse_timestamp(data.get("timestamp")),
            success=bool(data.get("success", False)),
            duration=duration,
            status=int(status) if isinstance(status, int) and status > 0 else None,
            condition_results=tuple(
                ConditionResult.from_dict(c) for c in _optional_list(data, "conditionResults", "result")
            ),
            errors=tuple(str(e) for e in _optional_list(data, "errors", "result")),
            hostname=data.get("hostname") or None,
            state=data.get("state") or None,
        )


class EventType(str, Enum):
    """Kinds of state transitions recorded by the server."""

    START = "START"
    HEALTHY = "HEALTHY"
    UNHEALTHY = "UNHEALTHY"


@dataclass(frozen=True)
class Event:
    """A discrete state transition of an endpoint."""

    type: EventType
    timestamp: datetime

    @classmethod
    def from_dict(cls, data: Any) -> "Event":
        data = _require_dict(data, "event")
        try:
            event_type = EventType(data.get("type"))
        except ValueError:
            raise PayloadError(f"Unknown event type: {data.get('type')!r}")
        return cls(type=event_type, timestamp=parse_timestamp(data.get("timestamp")))


@dataclass(frozen=True)
class EndpointStatus:
    """Current state of one monitored endpoint.

    Attributes:
        key: Unique key of the endpoint, used in API paths.
        name: Display name.
        group: Optional group name.
        results: Most recent results, oldest first.
        events: State transitions, newest first. Only populated by the
            single-endpoint API.
    """

    key: str
    name: str
    group: str | None = None
    results: tuple[Result, ...] = ()
    events: tuple[Event, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "EndpointStatus":
        data = _require_dict(data, "endpointStatus")
        key = data.get("key")
        if not key:
            raise PayloadError("Endpoint status is missing 'key'")
        return cls(
            key=str(key),
            name=str(data.get("name") or key),
            group=data.get("group") or None,
            results=tuple(Result.from_dict(r) for r in _optional_list(data, "results", "endpointStatus")),
            events=tuple(Event.from_dict(e) for e in _optional_list(data, "events", "endpointStatus")),
        )


def parse_endpoint_statuses(payload: Any) -> list[EndpointStatus]:
    """Parse the body of the paginated endpoint statuses API.

    Raises:
        PayloadError: If the payload is not a list of endpoint statuses.
    """
    if not isinstance(payload, list):
        raise PayloadError("Endpoint statuses payload must be a list")
    return [EndpointStatus.from_dict(item) for item in payload]


@dataclass(frozen=True)
class TimelineEntry:
    """An event annotated with its narrative text and relative time."""

    event: EventType
    timestamp: datetime
    fancy_text: str
    fancy_time_ago: str


@dataclass(frozen=True)
class ResponseTimeStats:
    """Response time statistics over a result window, in whole milliseconds."""

    min: int
    max: int
    average: int


@dataclass
class Group:
    """Named group of endpoint statuses as displayed on the dashboard."""

    name: str
    endpoints: list[EndpointStatus] = field(default_factory=list)
    unhealthy_count: int = 0
    collapsed: bool = False


@dataclass(frozen=True)
class Rect:
    """Viewport-relative bounding rectangle."""

    x: float
    y: float
    width: float
    height: float


@dataclass
class TooltipState:
    """Hover tooltip state.

    Attributes:
        result: Result the tooltip describes, or None when cleared.
        anchor: Bounding rectangle of the hovered element, or None.
        top: Computed top coordinate.
        left: Computed left coordinate.
        visible: Whether the tooltip is shown.
    """

    result: Result | None = None
    anchor: Rect | None = None
    top: float = 0
    left: float = 0
    visible: bool = False
