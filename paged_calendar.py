"""Bidirectional month pagination around an anchor date."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Sequence

from calendar_logic import (
    Month,
    PaginationDirection,
    compute_month,
    is_past_boundary,
    offset_month,
)
from pagination import PageRequest, PaginationCursor, PagingStatus

logger = logging.getLogger(__name__)

OnMonthLoaded = Callable[[int, int], None]
OnPaginationCompleted = Callable[[PaginationDirection], None]
Defer = Callable[[Callable[[], None]], None]


@dataclass(frozen=True)
class CalendarConfig:
    """Bounds and display options for a :class:`PagedCalendar`.

    ``min_date`` and ``max_date`` are inclusive; ``None`` leaves that
    direction unbounded. ``keep_alive`` is only read by the presentation
    layer.
    """

    min_date: date | None = None
    max_date: date | None = None
    initial_date: date | None = None
    start_week_with_sunday: bool = False
    invisible_months_threshold: int = 1
    keep_alive: bool = False

    def __post_init__(self) -> None:
        if (
            self.min_date is not None
            and self.max_date is not None
            and self.min_date > self.max_date
        ):
            raise ValueError(
                f"min_date {self.min_date} is after max_date {self.max_date}"
            )
        if self.invisible_months_threshold < 0:
            raise ValueError("invisible_months_threshold must not be negative")


def resolve_initial_date(config: CalendarConfig, today: date | None = None) -> date:
    """Return the anchor date: the explicit initial date, else today clamped."""
    if config.initial_date is not None:
        return config.initial_date
    today = today or date.today()
    if config.min_date is not None and today < config.min_date:
        return config.min_date
    if config.max_date is not None and today > config.max_date:
        return config.max_date
    return today


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class PagedCalendar:
    """Owns one backward and one forward cursor over :class:`Month` pages.

    Each requested page is computed synchronously and handed back to its
    cursor through ``defer``; UI code passes something like
    ``root.after_idle`` so delivery happens on the next event-loop turn.
    """

    def __init__(
        self,
        config: CalendarConfig | None = None,
        *,
        on_month_loaded: OnMonthLoaded | None = None,
        on_pagination_completed: OnPaginationCompleted | None = None,
        defer: Defer | None = None,
        today: Callable[[], date] = date.today,
        max_in_flight: int = 1,
    ) -> None:
        self._defer = defer or _call_now
        self._today = today
        self._month_loaded_listeners: list[OnMonthLoaded] = []
        self._completed_listeners: list[OnPaginationCompleted] = []
        if on_month_loaded is not None:
            self._month_loaded_listeners.append(on_month_loaded)
        if on_pagination_completed is not None:
            self._completed_listeners.append(on_pagination_completed)

        self._cursors: dict[PaginationDirection, PaginationCursor[Month]] = {
            PaginationDirection.BACKWARD: PaginationCursor(
                first_key=0, step=-1, name="backward", max_in_flight=max_in_flight
            ),
            PaginationDirection.FORWARD: PaginationCursor(
                first_key=0, step=1, name="forward", max_in_flight=max_in_flight
            ),
        }
        for direction, cursor in self._cursors.items():
            cursor.add_page_request_listener(self._page_fetcher(direction))
            cursor.add_page_listener(self._page_appended)
            cursor.add_status_listener(self._status_watcher(direction))

        self._config = config or CalendarConfig()
        self._anchor = resolve_initial_date(self._config, self._today())
        self._reset_cursors()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def config(self) -> CalendarConfig:
        return self._config

    @property
    def anchor_date(self) -> date:
        return self._anchor

    def configure(self, config: CalendarConfig) -> bool:
        """Apply a new configuration; return True if the cursors were reset."""
        old = self._config
        self._config = config
        anchor = resolve_initial_date(config, self._today())
        changed = (
            anchor != self._anchor
            or config.min_date != old.min_date
            or config.max_date != old.max_date
            or config.start_week_with_sunday != old.start_week_with_sunday
        )
        self._anchor = anchor
        if changed:
            logger.info(
                "Reconfigured calendar: anchor=%s min=%s max=%s",
                anchor,
                config.min_date,
                config.max_date,
            )
            self._reset_cursors()
        return changed

    def refresh(self) -> None:
        """Drop every loaded month and start again from the anchor."""
        self._anchor = resolve_initial_date(self._config, self._today())
        self._reset_cursors()

    def can_paginate(self, direction: PaginationDirection) -> bool:
        if direction is PaginationDirection.BACKWARD:
            return self._config.min_date is None or self._anchor > self._config.min_date
        return self._config.max_date is None or self._anchor < self._config.max_date

    def add_month_loaded_listener(self, listener: OnMonthLoaded) -> None:
        self._month_loaded_listeners.append(listener)

    def add_pagination_completed_listener(
        self, listener: OnPaginationCompleted
    ) -> None:
        self._completed_listeners.append(listener)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------
    def cursor(self, direction: PaginationDirection) -> PaginationCursor[Month]:
        return self._cursors[direction]

    def months(self, direction: PaginationDirection) -> Sequence[Month]:
        """Loaded months, ordered away from the anchor."""
        return self._cursors[direction].items

    def status(self, direction: PaginationDirection) -> PagingStatus:
        return self._cursors[direction].status

    def request_next(self, direction: PaginationDirection) -> int | None:
        return self._cursors[direction].request_next()

    def ensure_loaded(
        self, direction: PaginationDirection, visible_index: int
    ) -> int | None:
        """Request another page if ``visible_index`` is near the loaded end.

        ``visible_index`` is the position, counted away from the anchor, of
        the furthest month currently on screen (-1 when none is).
        """
        remaining = len(self.months(direction)) - 1 - visible_index
        if remaining > self._config.invisible_months_threshold:
            return None
        return self.request_next(direction)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _base_month(self, direction: PaginationDirection) -> tuple[int, int]:
        if direction is PaginationDirection.BACKWARD:
            return offset_month(self._anchor.year, self._anchor.month, -1)
        return self._anchor.year, self._anchor.month

    def _reset_cursors(self) -> None:
        for direction, cursor in self._cursors.items():
            cursor.enabled = self.can_paginate(direction)
            cursor.reset()

    def _page_fetcher(
        self, direction: PaginationDirection
    ) -> Callable[[PageRequest], None]:
        cursor = self._cursors[direction]

        def fetch(request: PageRequest) -> None:
            config = self._config
            month = compute_month(
                self._base_month(direction),
                request.key,
                config.start_week_with_sunday,
            )
            is_last = is_past_boundary(
                month, config.min_date, config.max_date, direction
            )
            self._defer(lambda: cursor.append_page(request, [month], is_last=is_last))

        return fetch

    def _page_appended(self, _key: int, months: Sequence[Month]) -> None:
        for month in months:
            for listener in list(self._month_loaded_listeners):
                listener(month.year, month.month)

    def _status_watcher(
        self, direction: PaginationDirection
    ) -> Callable[[PagingStatus], None]:
        def on_status(status: PagingStatus) -> None:
            if status is not PagingStatus.COMPLETED:
                return
            logger.info("Pagination completed (%s)", direction.value)
            for listener in list(self._completed_listeners):
                listener(direction)

        return on_status


__all__ = [
    "CalendarConfig",
    "PagedCalendar",
    "PaginationDirection",
    "resolve_initial_date",
]
