"""Tests for the home and detail view models."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from statusboard.client import StatusClient
from statusboard.config import Config, ServerConfig, ThemeConfig
from statusboard.grouping import UNGROUPED
from statusboard.models import Rect
from statusboard.storage import Storage
from statusboard.theme import ColorResolver
from statusboard.views import DetailView, HomeView

BASE = "http://localhost:8080/api/v1/endpoints"


def _response(payload: object) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = payload
    return response


def _result(success: bool, duration_ms: int, timestamp: str = "2024-01-01T12:00:00Z") -> dict:
    return {"success": success, "duration": duration_ms * 1_000_000, "timestamp": timestamp}


@pytest.fixture
def session() -> MagicMock:
    """Create a mock requests session."""
    mock_session = MagicMock()
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def storage() -> Storage:
    """Create an in-memory settings store."""
    store = Storage(":memory:")
    yield store
    store.close()


@pytest.fixture
def resolver(storage: Storage) -> ColorResolver:
    """Create a resolver using the built-in palette."""
    return ColorResolver(ThemeConfig(), storage)


@pytest.fixture
def client(session: MagicMock, storage: Storage) -> StatusClient:
    """Create a client bound to the mock session."""
    return StatusClient(ServerConfig(), storage, session=session)


@pytest.fixture
def statuses_payload() -> list:
    """Return a page of endpoint statuses."""
    return [
        {"key": "core_api", "name": "api", "group": "core", "results": [_result(True, 10), _result(False, 30)]},
        {"key": "_website", "name": "website", "results": [_result(True, 5)]},
        {"key": "core_db", "name": "db", "group": "core", "results": [_result(True, 1), _result(True, 2)]},
    ]


@pytest.fixture
def home(client: StatusClient, storage: Storage, resolver: ColorResolver) -> HomeView:
    """Create a home view."""
    view = HomeView(client, storage, resolver, Config())
    yield view
    view.stop()


class TestHomeView:
    """Tests for HomeView."""

    def test_snapshot_builds_groups_and_rows(
        self, home: HomeView, session: MagicMock, statuses_payload: list
    ) -> None:
        """A new snapshot is grouped and summarized."""
        session.get.return_value = _response(statuses_payload)

        assert home.poller.poll() is True

        assert [g.name for g in home.groups] == ["core", UNGROUPED]
        assert home.groups[0].unhealthy_count == 1
        assert home.rows["core_api"].response_time == "~20ms"
        assert home.rows["core_api"].colors == ("#22C55E", "#E43B3C")
        assert home.rows["_website"].stats.max == 5

    def test_listeners_are_notified(self, home: HomeView, session: MagicMock, statuses_payload: list) -> None:
        """Subscribers are called with the view after recomputation."""
        listener = MagicMock()
        home.subscribe(listener)
        session.get.return_value = _response(statuses_payload)

        home.refresh()
        home.refresh()

        listener.assert_called_once_with(home)

    def test_collapsed_groups_come_from_storage(
        self, home: HomeView, session: MagicMock, storage: Storage, statuses_payload: list
    ) -> None:
        """Persisted collapse flags are applied to new groups."""
        storage.set_group_collapsed("core", True)
        session.get.return_value = _response(statuses_payload)

        home.refresh()
        assert [g.collapsed for g in home.groups] == [True, False]

    def test_toggle_group_persists(
        self, home: HomeView, session: MagicMock, storage: Storage, statuses_payload: list
    ) -> None:
        """Toggling a group updates the view and the store."""
        session.get.return_value = _response(statuses_payload)
        home.refresh()

        assert home.toggle_group("core") is True
        assert home.groups[0].collapsed is True
        assert storage.is_group_collapsed("core") is True

    def test_toggle_average_switches_to_range(
        self, home: HomeView, session: MagicMock, statuses_payload: list
    ) -> None:
        """Turning off the average shows the min-max range."""
        session.get.return_value = _response(statuses_payload)
        home.refresh()

        home.toggle_show_average_response_time()
        assert home.rows["core_api"].response_time == "10-30ms"
        assert home.rows["_website"].response_time == "5ms"

    def test_row_colors_follow_theme_switch(
        self, client: StatusClient, storage: Storage, session: MagicMock, statuses_payload: list
    ) -> None:
        """Switching theme recolors rows without a new snapshot."""
        resolver = ColorResolver(ThemeConfig(themes={"default": {}, "alt": {"healthy": "#000000"}}), storage)
        view = HomeView(client, storage, resolver, Config())
        session.get.return_value = _response(statuses_payload)
        view.refresh()
        assert view.rows["_website"].colors == ("#22C55E",)

        resolver.set_active_theme("alt")
        view.refresh()

        assert view.poller.payload is statuses_payload
        assert view.rows["_website"].colors == ("#000000",)
        assert view.rows["core_api"].colors == ("#000000", "#E43B3C")
        view.stop()

    def test_unchanged_results_are_not_reaggregated(
        self, home: HomeView, session: MagicMock, statuses_payload: list
    ) -> None:
        """Aggregation is skipped when an endpoint's results object is reused."""
        session.get.return_value = _response(statuses_payload)
        home.refresh()
        aggregator = home._aggregators["core_api"]

        home.toggle_show_average_response_time()
        assert aggregator.computations == 1

    def test_removed_endpoints_are_pruned(
        self, home: HomeView, session: MagicMock, statuses_payload: list
    ) -> None:
        """Endpoints missing from a new snapshot are dropped."""
        session.get.return_value = _response(statuses_payload)
        home.refresh()
        session.get.return_value = _response(statuses_payload[:1])
        home.refresh()

        assert list(home.rows) == ["core_api"]
        assert list(home._aggregators) == ["core_api"]

    def test_paging(self, home: HomeView, session: MagicMock) -> None:
        """Paging requests the adjacent page and never goes below 1."""
        session.get.return_value = _response([])

        home.previous_page()
        assert session.get.call_count == 0
        home.next_page()
        assert home.page == 2
        assert session.get.call_args.kwargs["params"] == {"page": 2}
        home.previous_page()
        assert home.page == 1

    def test_set_refresh_interval(self, home: HomeView, session: MagicMock, storage: Storage) -> None:
        """Refresh interval changes are persisted."""
        session.get.return_value = _response([])
        assert home.set_refresh_interval(30) == 30
        assert storage.get_refresh_interval() == 30

    def test_hover_returns_tooltip_content(
        self, home: HomeView, session: MagicMock, statuses_payload: list
    ) -> None:
        """Hovering a result shows its tooltip."""
        session.get.return_value = _response(statuses_payload)
        home.refresh()
        result = home.rows["core_api"].status.results[1]

        content = home.hover_enter(
            result, Rect(x=10, y=10, width=8, height=8), Rect(x=0, y=0, width=100, height=50), 800, 600
        )
        assert content.response_time == "30ms"
        assert home.tooltip.state.visible is True

        home.hover_leave()
        assert home.tooltip.state.visible is False

    def test_stop_clears_state(self, home: HomeView, session: MagicMock, statuses_payload: list) -> None:
        """Stopping the view drops derived state."""
        session.get.return_value = _response(statuses_payload)
        home.refresh()

        home.stop()
        assert home.groups == []
        assert home.rows == {}


@pytest.fixture
def endpoint_payload() -> dict:
    """Return a single endpoint's status with events."""
    return {
        "key": "core_api",
        "name": "api",
        "group": "core",
        "results": [_result(True, 10), _result(True, 40)],
        "events": [
            {"type": "HEALTHY", "timestamp": "2024-01-01T12:00:00Z"},
            {"type": "START", "timestamp": "2024-01-01T11:00:00Z"},
        ],
    }


@pytest.fixture
def detail(client: StatusClient, storage: Storage, resolver: ColorResolver) -> DetailView:
    """Create a detail view for one endpoint."""
    view = DetailView(client, storage, resolver, "core_api")
    yield view
    view.stop()


class TestDetailView:
    """Tests for DetailView."""

    def test_snapshot_sets_endpoint_and_stats(
        self, detail: DetailView, session: MagicMock, endpoint_payload: dict
    ) -> None:
        """A new snapshot updates the endpoint and its statistics."""
        session.get.return_value = _response(endpoint_payload)

        detail.refresh()

        assert session.get.call_args.args[0] == f"{BASE}/core_api/statuses"
        assert detail.endpoint.name == "api"
        assert detail.response_time == "~25ms"
        assert detail.show_response_time_chart_and_badges is True

    def test_charts_hidden_without_durations(
        self, detail: DetailView, session: MagicMock, endpoint_payload: dict
    ) -> None:
        """Charts and badges are hidden when no result has a duration."""
        endpoint_payload["results"] = [_result(True, 0)]
        session.get.return_value = _response(endpoint_payload)

        detail.refresh()
        assert detail.show_response_time_chart_and_badges is False

    def test_timeline(self, detail: DetailView, session: MagicMock, endpoint_payload: dict) -> None:
        """The timeline narrates events newest first."""
        session.get.return_value = _response(endpoint_payload)
        detail.refresh()

        now = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC) + timedelta(hours=2)
        timeline = detail.timeline(now)
        assert [e.fancy_text for e in timeline] == ["Endpoint became healthy", "Monitoring started"]
        assert [e.fancy_time_ago for e in timeline] == ["2 hours ago", "3 hours ago"]

    def test_timeline_empty_before_first_snapshot(self, detail: DetailView) -> None:
        """No endpoint yet means no timeline."""
        assert detail.timeline() == []

    def test_badge_urls(self, detail: DetailView) -> None:
        """Badge URLs cover every duration and the chart follows the selection."""
        urls = detail.badge_urls()
        assert urls["health"] == f"{BASE}/core_api/health/badge.svg"
        assert urls["uptime:7d"] == f"{BASE}/core_api/uptimes/7d/badge.svg"
        assert urls["chart"] == f"{BASE}/core_api/response-times/24h/chart.svg"

        detail.set_chart_duration("30d")
        assert detail.badge_urls()["chart"] == f"{BASE}/core_api/response-times/30d/chart.svg"

    def test_rejects_unknown_chart_duration(self, detail: DetailView) -> None:
        """Only supported chart durations can be selected."""
        with pytest.raises(ValueError):
            detail.set_chart_duration("2h")
        assert detail.selected_chart_duration == "24h"

    def test_stop_clears_state(self, detail: DetailView, session: MagicMock, endpoint_payload: dict) -> None:
        """Stopping the view drops the endpoint."""
        session.get.return_value = _response(endpoint_payload)
        detail.refresh()

        detail.stop()
        assert detail.endpoint is None
        assert detail.response_time == ""
