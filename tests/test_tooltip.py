"""Tests for tooltip placement and content."""

from datetime import UTC, datetime

import pytest

from statusboard.config import ThemeConfig
from statusboard.models import ConditionResult, Rect, Result
from statusboard.storage import Storage
from statusboard.theme import ColorResolver
from statusboard.timefmt import prettify_timestamp
from statusboard.tooltip import Tooltip, build_tooltip_content, compute_tooltip_position

TOOLTIP = Rect(x=0, y=0, width=200, height=100)


class TestComputeTooltipPosition:
    """Tests for compute_tooltip_position."""

    def test_default_placement_below_anchor(self) -> None:
        """Without overflow the tooltip sits below the anchor's left edge."""
        anchor = Rect(x=100, y=200, width=20, height=20)
        assert compute_tooltip_position(anchor, TOOLTIP, 1000, 1000) == (230, 100)

    def test_right_overflow_aligns_right_edges(self) -> None:
        """Overflowing the right edge aligns the tooltip with the anchor's right edge."""
        anchor = Rect(x=900, y=200, width=20, height=20)
        top, left = compute_tooltip_position(anchor, TOOLTIP, 1000, 1000)
        assert (top, left) == (230, 720)

    def test_right_overflow_clamps_to_zero(self) -> None:
        """A tooltip wider than the space left of the anchor starts at zero."""
        anchor = Rect(x=50, y=200, width=20, height=20)
        wide = Rect(x=0, y=0, width=2000, height=100)
        assert compute_tooltip_position(anchor, wide, 1000, 1000) == (230, 0)

    def test_bottom_overflow_flips_above(self) -> None:
        """Overflowing the bottom edge moves the tooltip above the anchor."""
        anchor = Rect(x=100, y=900, width=20, height=20)
        assert compute_tooltip_position(anchor, TOOLTIP, 1000, 1000) == (790, 100)

    def test_flip_reverted_when_above_is_negative(self) -> None:
        """If there is no room above either, the tooltip stays below."""
        anchor = Rect(x=100, y=50, width=20, height=20)
        assert compute_tooltip_position(anchor, TOOLTIP, 1000, 150) == (80, 100)

    def test_scroll_offset_counts_toward_overflow(self) -> None:
        """Scroll offsets are added when checking the document edges."""
        anchor = Rect(x=100, y=600, width=20, height=20)
        assert compute_tooltip_position(anchor, TOOLTIP, 1000, 1000) == (630, 100)
        assert compute_tooltip_position(anchor, TOOLTIP, 1000, 1000, scroll_y=300) == (490, 100)

    def test_negative_anchor_top_does_not_flip(self) -> None:
        """An anchor scrolled far above the viewport is never flipped."""
        anchor = Rect(x=100, y=-200, width=20, height=20)
        assert compute_tooltip_position(anchor, TOOLTIP, 1000, 100, scroll_y=5000) == (-170, 100)

    @pytest.mark.parametrize("anchor_x", [0, 10, 400, 790, 900, 990])
    @pytest.mark.parametrize("anchor_y", [0, 10, 300, 880, 990])
    def test_placement_stays_non_negative(self, anchor_x: float, anchor_y: float) -> None:
        """Anchors inside the document never produce negative coordinates."""
        anchor = Rect(x=anchor_x, y=anchor_y, width=10, height=10)
        top, left = compute_tooltip_position(anchor, TOOLTIP, 1000, 1000)
        assert top >= 0
        assert left >= 0


@pytest.fixture
def result() -> Result:
    """Return a failed result with conditions and errors."""
    return Result(
        timestamp=datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC),
        success=False,
        duration=12_500_000,
        condition_results=(
            ConditionResult(condition="[CONNECTED] == true", success=True),
            ConditionResult(condition="[STATUS] == 200", success=False),
        ),
        errors=("unexpected status 503",),
        hostname="example.org",
    )


class TestTooltip:
    """Tests for the Tooltip state holder."""

    def test_hover_enter_shows_and_positions(self, result: Result) -> None:
        """Entering an element makes the tooltip visible and places it."""
        tooltip = Tooltip()
        anchor = Rect(x=100, y=200, width=20, height=20)
        state = tooltip.hover_enter(result, anchor, TOOLTIP, 1000, 1000)
        assert state.visible is True
        assert state.result is result
        assert (state.top, state.left) == (230, 100)

    def test_content_changed_repositions(self, result: Result) -> None:
        """A resized tooltip is placed again using the new size."""
        tooltip = Tooltip()
        anchor = Rect(x=900, y=200, width=20, height=20)
        tooltip.hover_enter(result, anchor, Rect(x=0, y=0, width=10, height=10), 1000, 1000)
        assert tooltip.state.left == 900
        state = tooltip.content_changed(TOOLTIP)
        assert state.left == 720
        assert state.visible is True

    def test_content_changed_while_hidden_is_ignored(self) -> None:
        """Resizing a hidden tooltip neither shows nor moves it."""
        tooltip = Tooltip()
        state = tooltip.content_changed(TOOLTIP)
        assert state.visible is False
        assert (state.top, state.left) == (0, 0)

    def test_hover_leave_hides(self, result: Result) -> None:
        """Leaving the element hides the tooltip and clears its result."""
        tooltip = Tooltip()
        tooltip.hover_enter(result, Rect(x=100, y=200, width=20, height=20), TOOLTIP, 1000, 1000)
        state = tooltip.hover_leave()
        assert state.visible is False
        assert state.result is None
        assert state.anchor is None


class TestBuildTooltipContent:
    """Tests for build_tooltip_content."""

    def test_content(self, result: Result) -> None:
        """Content lists timestamp, response time, conditions and errors."""
        resolver = ColorResolver(ThemeConfig(), Storage(":memory:"))
        content = build_tooltip_content(result, resolver)
        assert content.timestamp == prettify_timestamp(result.timestamp)
        assert content.response_time == "13ms"
        assert content.color == "#E43B3C"
        assert content.conditions == ["✅ [CONNECTED] == true", "❌ [STATUS] == 200"]
        assert content.errors == ["- unexpected status 503"]
        assert content.hostname == "example.org"
