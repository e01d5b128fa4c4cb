"""Hover tooltip placement and content.

Coordinates are viewport-relative, as reported by an element's bounding
rectangle. The tooltip is placed below its anchor by default and moved to
stay within the document when it would overflow the right or bottom edge.
"""

from dataclasses import dataclass, field

from .aggregation import NANOSECONDS_PER_MILLISECOND
from .models import Rect, Result, TooltipState
from .theme import ColorResolver
from .timefmt import prettify_timestamp, round_half_away_from_zero

# Vertical gap between the anchor's top edge and a tooltip placed below it.
BELOW_OFFSET = 30
# Gap between a tooltip placed above its anchor and the anchor's top edge.
ABOVE_OFFSET = 10
# Overflow tolerance at the right and bottom document edges.
EDGE_MARGIN = 50


def compute_tooltip_position(
    anchor: Rect,
    tooltip: Rect,
    document_width: float,
    document_height: float,
    scroll_x: float = 0,
    scroll_y: float = 0,
) -> tuple[float, float]:
    """Compute where to place a tooltip for a hovered element.

    Args:
        anchor: Bounding rectangle of the hovered element.
        tooltip: Measured rectangle of the tooltip (only its size is used).
        document_width: Total scrollable width of the document.
        document_height: Total scrollable height of the document.
        scroll_x: Horizontal scroll offset of the viewport.
        scroll_y: Vertical scroll offset of the viewport.

    Returns:
        Tuple of (top, left). ``left`` is never negative.
    """
    top = anchor.y + BELOW_OFFSET
    left = anchor.x

    if left + scroll_x + tooltip.width + EDGE_MARGIN > document_width:
        # Align the tooltip's right edge with the anchor's right edge
        left = anchor.x + anchor.width - tooltip.width
        if left < 0:
            left = 0

    if top + scroll_y + tooltip.height + EDGE_MARGIN > document_height and top >= 0:
        top = anchor.y - (tooltip.height + ABOVE_OFFSET)
        if top < 0:
            top = anchor.y + BELOW_OFFSET

    return top, max(left, 0)


class Tooltip:
    """Tooltip state driven by hover callbacks.

    ``visible`` is only ever changed by :meth:`hover_enter` and
    :meth:`hover_leave`.
    """

    def __init__(self) -> None:
        self.state = TooltipState()
        self._tooltip_rect: Rect | None = None
        self._document: tuple[float, float, float, float] = (0, 0, 0, 0)

    def hover_enter(
        self,
        result: Result,
        anchor: Rect,
        tooltip_rect: Rect,
        document_width: float,
        document_height: float,
        scroll_x: float = 0,
        scroll_y: float = 0,
    ) -> TooltipState:
        self.state.result = result
        self.state.anchor = anchor
        self.state.visible = True
        self._tooltip_rect = tooltip_rect
        self._document = (document_width, document_height, scroll_x, scroll_y)
        self._reposition()
        return self.state

    def content_changed(self, tooltip_rect: Rect) -> TooltipState:
        """Recompute placement after the tooltip's content (and size) changed."""
        if self.state.visible:
            self._tooltip_rect = tooltip_rect
            self._reposition()
        return self.state

    def hover_leave(self) -> TooltipState:
        self.state.visible = False
        self.state.result = None
        self.state.anchor = None
        self._tooltip_rect = None
        return self.state

    def _reposition(self) -> None:
        if self.state.anchor is None or self._tooltip_rect is None:
            return
        width, height, scroll_x, scroll_y = self._document
        self.state.top, self.state.left = compute_tooltip_position(
            self.state.anchor, self._tooltip_rect, width, height, scroll_x, scroll_y
        )


@dataclass(frozen=True)
class TooltipContent:
    """Text shown in the tooltip for one result."""

    timestamp: str
    response_time: str
    color: str
    conditions: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    hostname: str | None = None


def build_tooltip_content(result: Result, resolver: ColorResolver) -> TooltipContent:
    """Build the tooltip text for a result."""
    duration_ms = round_half_away_from_zero(result.duration / NANOSECONDS_PER_MILLISECOND)
    return TooltipContent(
        timestamp=prettify_timestamp(result.timestamp),
        response_time=f"{duration_ms}ms",
        color=resolver.result_color(result),
        conditions=[("✅ " if c.success else "❌ ") + c.condition for c in result.condition_results],
        errors=[f"- {error}" for error in result.errors],
        hostname=result.hostname,
    )
