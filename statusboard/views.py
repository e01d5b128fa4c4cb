"""View models for the dashboard home grid and the endpoint detail page.

Each view owns a :class:`StatusPoller` and recomputes its derived state only
when the poller signals a changed payload.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from .aggregation import ResponseTimeAggregator, format_response_time, has_response_time_data
from .client import StatusClient
from .config import CHART_DURATIONS, Config
from .grouping import group_endpoint_statuses
from .models import EndpointStatus, Group, Rect, ResponseTimeStats, Result, TimelineEntry, parse_endpoint_statuses
from .narrative import build_timeline
from .poller import StatusPoller
from .storage import Storage
from .theme import ColorResolver
from .tooltip import Tooltip, TooltipContent, build_tooltip_content

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointRow:
    """One endpoint in the home grid."""

    status: EndpointStatus
    stats: ResponseTimeStats | None
    response_time: str
    resolver: ColorResolver = field(repr=False, compare=False)

    @property
    def colors(self) -> tuple[str, ...]:
        """Result colors under the theme active at the time of reading."""
        return tuple(self.resolver.result_color(result) for result in self.status.results)


class _HoverMixin:
    """Tooltip handling shared by both views."""

    tooltip: Tooltip
    resolver: ColorResolver

    def hover_enter(
        self,
        result: Result,
        anchor: Rect,
        tooltip_rect: Rect,
        document_width: float,
        document_height: float,
        scroll_x: float = 0,
        scroll_y: float = 0,
    ) -> TooltipContent:
        self.tooltip.hover_enter(result, anchor, tooltip_rect, document_width, document_height, scroll_x, scroll_y)
        return build_tooltip_content(result, self.resolver)

    def tooltip_resized(self, tooltip_rect: Rect) -> None:
        self.tooltip.content_changed(tooltip_rect)

    def hover_leave(self) -> None:
        self.tooltip.hover_leave()


class HomeView(_HoverMixin):
    """Grouped grid of all endpoints with response time summaries."""

    def __init__(self, client: StatusClient, storage: Storage, resolver: ColorResolver, config: Config) -> None:
        self.client = client
        self.storage = storage
        self.resolver = resolver
        self.tooltip = Tooltip()
        self.show_average_response_time = config.dashboard.show_average_response_time

        self.statuses: list[EndpointStatus] = []
        self.groups: list[Group] = []
        self.rows: dict[str, EndpointRow] = {}
        self._aggregators: dict[str, ResponseTimeAggregator] = {}
        self._listeners: list = []
        self._lock = threading.Lock()

        self.poller = StatusPoller(
            fetch=client.get_endpoint_statuses,
            parse=parse_endpoint_statuses,
            on_change=self._on_snapshot_changed,
            interval=storage.get_refresh_interval(),
            page=config.dashboard.page,
            storage=storage,
            name="home",
        )

    def subscribe(self, listener) -> None:
        """Register a callable invoked with the view after each recomputation."""
        self._listeners.append(listener)

    def start(self) -> None:
        self.poller.start()

    def stop(self) -> None:
        self.poller.stop()
        with self._lock:
            self.statuses = []
            self.groups = []
            self.rows = {}
            self._aggregators.clear()
        self.tooltip.hover_leave()

    @property
    def page(self) -> int:
        return self.poller.page

    def next_page(self) -> None:
        self.poller.set_page(self.poller.page + 1)

    def previous_page(self) -> None:
        if self.poller.page > 1:
            self.poller.set_page(self.poller.page - 1)

    def set_refresh_interval(self, seconds: int) -> int:
        return self.poller.set_interval(seconds)

    def refresh(self) -> None:
        self.poller.refresh()

    def toggle_group(self, name: str) -> bool:
        """Flip and persist a group's collapsed flag."""
        collapsed = self.storage.toggle_group_collapsed(name)
        with self._lock:
            for group in self.groups:
                if group.name == name:
                    group.collapsed = collapsed
        return collapsed

    def toggle_show_average_response_time(self) -> None:
        with self._lock:
            self.show_average_response_time = not self.show_average_response_time
            self.rows = {key: self._build_row(row.status) for key, row in self.rows.items()}

    def _build_row(self, status: EndpointStatus) -> EndpointRow:
        aggregator = self._aggregators.setdefault(status.key, ResponseTimeAggregator())
        stats = aggregator.stats(status.results)
        return EndpointRow(
            status=status,
            stats=stats,
            response_time=format_response_time(stats, self.show_average_response_time),
            resolver=self.resolver,
        )

    def _on_snapshot_changed(self, statuses: list[EndpointStatus]) -> None:
        with self._lock:
            self.statuses = statuses
            self.groups = group_endpoint_statuses(statuses, self.storage.is_group_collapsed)
            self.rows = {status.key: self._build_row(status) for status in statuses}
            for key in list(self._aggregators):
                if key not in self.rows:
                    del self._aggregators[key]
        logger.debug("Home view updated: %d endpoints in %d groups", len(statuses), len(self.groups))
        for listener in self._listeners:
            listener(self)


class DetailView(_HoverMixin):
    """Result history and event timeline of a single endpoint."""

    def __init__(
        self,
        client: StatusClient,
        storage: Storage,
        resolver: ColorResolver,
        key: str,
        show_average_response_time: bool = True,
    ) -> None:
        self.client = client
        self.storage = storage
        self.resolver = resolver
        self.key = key
        self.tooltip = Tooltip()
        self.show_average_response_time = show_average_response_time
        self.selected_chart_duration = "24h"

        self.endpoint: EndpointStatus | None = None
        self.stats: ResponseTimeStats | None = None
        self.show_response_time_chart_and_badges = False
        self._aggregator = ResponseTimeAggregator()
        self._listeners: list = []
        self._lock = threading.Lock()

        self.poller = StatusPoller(
            fetch=lambda page: client.get_endpoint_status(key, page),
            parse=EndpointStatus.from_dict,
            on_change=self._on_snapshot_changed,
            interval=storage.get_refresh_interval(),
            storage=storage,
            name=f"detail:{key}",
        )

    def subscribe(self, listener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        self.poller.start()

    def stop(self) -> None:
        self.poller.stop()
        with self._lock:
            self.endpoint = None
            self.stats = None
        self.tooltip.hover_leave()

    @property
    def page(self) -> int:
        return self.poller.page

    def next_page(self) -> None:
        self.poller.set_page(self.poller.page + 1)

    def previous_page(self) -> None:
        if self.poller.page > 1:
            self.poller.set_page(self.poller.page - 1)

    def set_refresh_interval(self, seconds: int) -> int:
        return self.poller.set_interval(seconds)

    def refresh(self) -> None:
        self.poller.refresh()

    def set_chart_duration(self, duration: str) -> None:
        if duration not in CHART_DURATIONS:
            raise ValueError(f"Invalid duration '{duration}'. Must be one of: {CHART_DURATIONS}")
        self.selected_chart_duration = duration

    def timeline(self, now: datetime | None = None) -> list[TimelineEntry]:
        """Return the event timeline, newest first, with fresh relative times."""
        endpoint = self.endpoint
        if endpoint is None:
            return []
        return build_timeline(endpoint.events, now)

    @property
    def response_time(self) -> str:
        return format_response_time(self.stats, self.show_average_response_time)

    def badge_urls(self) -> dict[str, str]:
        """Badge and chart image URLs for the endpoint."""
        urls = {"health": self.client.health_badge_url(self.key)}
        for duration in CHART_DURATIONS:
            urls[f"uptime:{duration}"] = self.client.uptime_badge_url(self.key, duration)
            urls[f"response-time:{duration}"] = self.client.response_time_badge_url(self.key, duration)
        urls["chart"] = self.client.response_time_chart_url(self.key, self.selected_chart_duration)
        return urls

    def _on_snapshot_changed(self, endpoint: EndpointStatus) -> None:
        with self._lock:
            self.endpoint = endpoint
            self.stats = self._aggregator.stats(endpoint.results)
            self.show_response_time_chart_and_badges = has_response_time_data(endpoint.results)
        logger.debug(
            "Detail view for %s updated: %d results, %d events", self.key, len(endpoint.results), len(endpoint.events)
        )
        for listener in self._listeners:
            listener(self)
