from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Protocol

from .store import DiagramStore
from .types import Point

# ============================================================================
# Drag controller
#
# Two-state machine (IDLE / DRAGGING) turning pointer events into table
# moves. Only a press on a table's header starts a drag; any release ends
# it. Pointer positions are converted to canvas-local coordinates through
# an injected transform, queried on every event.
# ============================================================================

logger = logging.getLogger(__name__)

Region = Literal["header", "body", "column", "canvas"]


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(slots=True)
class HitTarget:
    """What the pointer landed on."""

    region: Region
    table_id: str | None = None


CANVAS = HitTarget(region="canvas")


class CoordinateTransform(Protocol):
    def screen_to_local(self, point: Point) -> Point: ...


class IdentityTransform:
    def screen_to_local(self, point: Point) -> Point:
        return Point(x=point.x, y=point.y)


class OffsetTransform:
    """Canvas whose top-left sits at (origin_x, origin_y) on screen, zoomed by scale."""

    def __init__(self, origin_x: float = 0.0, origin_y: float = 0.0, scale: float = 1.0) -> None:
        if scale <= 0:
            raise ValueError("scale must be > 0")
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.scale = scale

    def screen_to_local(self, point: Point) -> Point:
        return Point(
            x=(point.x - self.origin_x) / self.scale,
            y=(point.y - self.origin_y) / self.scale,
        )


class DragController:
    def __init__(
        self,
        store: DiagramStore,
        transform: CoordinateTransform | None = None,
    ) -> None:
        self.store = store
        self.transform = transform or IdentityTransform()
        self.state = DragState.IDLE
        self.dragging_table_id: str | None = None
        self.selected_table_id: str | None = None
        self._offset = Point(x=0.0, y=0.0)

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def pointer_down(self, target: HitTarget, screen_point: Point) -> None:
        if target.region == "canvas":
            self.selected_table_id = None
            return
        if target.region != "header" or target.table_id is None:
            return
        table = self.store.get_table(target.table_id)
        if table is None:
            return

        local = self.transform.screen_to_local(screen_point)
        self._offset = Point(x=local.x - table.position.x, y=local.y - table.position.y)
        self.dragging_table_id = table.id
        self.selected_table_id = table.id
        self.state = DragState.DRAGGING
        logger.debug("Drag start on %s", table.id)

    def pointer_move(self, screen_point: Point) -> None:
        if self.state is not DragState.DRAGGING or self.dragging_table_id is None:
            return
        if self.store.get_table(self.dragging_table_id) is None:
            # Table deleted mid-drag
            self._reset()
            return
        local = self.transform.screen_to_local(screen_point)
        self.store.set_table_position(
            self.dragging_table_id,
            local.x - self._offset.x,
            local.y - self._offset.y,
        )

    def pointer_up(self) -> str | None:
        """End any drag. Returns the id of the table that was being dragged."""
        table_id = self.dragging_table_id
        if table_id is not None:
            logger.debug("Drag end on %s", table_id)
        self._reset()
        return table_id

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.dragging_table_id = None
        self._offset = Point(x=0.0, y=0.0)
