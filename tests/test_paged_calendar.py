from __future__ import annotations

from datetime import date

import pytest

from exceptions import ComputationFailure
from paged_calendar import (
    CalendarConfig,
    PagedCalendar,
    PaginationDirection,
    resolve_initial_date,
)
from pagination import PagingStatus

BACKWARD = PaginationDirection.BACKWARD
FORWARD = PaginationDirection.FORWARD


class Recorder:
    def __init__(self) -> None:
        self.loaded: list[tuple[int, int]] = []
        self.completed: list[PaginationDirection] = []

    def calendar(self, config: CalendarConfig, **kwargs) -> PagedCalendar:
        kwargs.setdefault("today", lambda: date(2021, 6, 15))
        return PagedCalendar(
            config,
            on_month_loaded=lambda y, m: self.loaded.append((y, m)),
            on_pagination_completed=self.completed.append,
            **kwargs,
        )


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


def _ym(cal: PagedCalendar, direction: PaginationDirection) -> list[tuple[int, int]]:
    return [(m.year, m.month) for m in cal.months(direction)]


def test_resolve_initial_date_prefers_explicit_date() -> None:
    config = CalendarConfig(
        min_date=date(2021, 1, 1), initial_date=date(2020, 5, 5)
    )
    assert resolve_initial_date(config, date(2022, 1, 1)) == date(2020, 5, 5)


def test_resolve_initial_date_clamps_today() -> None:
    bounded = CalendarConfig(min_date=date(2021, 1, 1), max_date=date(2021, 12, 31))

    assert resolve_initial_date(bounded, date(2020, 6, 1)) == date(2021, 1, 1)
    assert resolve_initial_date(bounded, date(2022, 6, 1)) == date(2021, 12, 31)
    assert resolve_initial_date(bounded, date(2021, 6, 1)) == date(2021, 6, 1)


def test_config_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        CalendarConfig(min_date=date(2021, 2, 1), max_date=date(2021, 1, 1))
    with pytest.raises(ValueError):
        CalendarConfig(invisible_months_threshold=-1)


def test_forward_starts_at_anchor_month(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig(initial_date=date(2021, 6, 15)))

    assert cal.request_next(FORWARD) == 0
    month = cal.months(FORWARD)[0]

    assert (month.year, month.month) == (2021, 6)
    assert month.weeks[0].first_day == date(2021, 5, 31)
    assert month.weeks[-1].last_day == date(2021, 7, 4)
    assert recorder.loaded == [(2021, 6)]


def test_backward_starts_one_month_before_anchor(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig(initial_date=date(2021, 1, 10)))

    cal.request_next(BACKWARD)
    cal.request_next(BACKWARD)

    assert _ym(cal, BACKWARD) == [(2020, 12), (2020, 11)]


def test_backward_completes_at_min_date_month(recorder: Recorder) -> None:
    cal = recorder.calendar(
        CalendarConfig(min_date=date(2021, 1, 15), initial_date=date(2021, 3, 1))
    )

    for _ in range(10):
        cal.request_next(BACKWARD)

    assert _ym(cal, BACKWARD) == [(2021, 2), (2021, 1)]
    assert cal.status(BACKWARD) is PagingStatus.COMPLETED
    assert recorder.completed == [BACKWARD]


def test_forward_completes_at_max_date_month(recorder: Recorder) -> None:
    cal = recorder.calendar(
        CalendarConfig(max_date=date(2021, 8, 20), initial_date=date(2021, 6, 15))
    )

    for _ in range(10):
        cal.request_next(FORWARD)

    assert _ym(cal, FORWARD) == [(2021, 6), (2021, 7), (2021, 8)]
    assert recorder.completed == [FORWARD]


def test_padding_can_end_a_direction_one_month_early(recorder: Recorder) -> None:
    # May 2021 padding runs to Sunday 2021-06-06, which already covers max_date
    cal = recorder.calendar(
        CalendarConfig(max_date=date(2021, 6, 3), initial_date=date(2021, 5, 10))
    )

    for _ in range(5):
        cal.request_next(FORWARD)

    assert _ym(cal, FORWARD) == [(2021, 5)]
    assert recorder.completed == [FORWARD]


def test_backward_ineligible_when_anchor_equals_min_date(recorder: Recorder) -> None:
    cal = recorder.calendar(
        CalendarConfig(min_date=date(2021, 1, 1), initial_date=date(2021, 1, 1))
    )

    assert not cal.can_paginate(BACKWARD)
    assert cal.request_next(BACKWARD) is None
    assert cal.status(BACKWARD) is PagingStatus.IDLE
    assert recorder.loaded == []

    cal.request_next(FORWARD)
    assert recorder.loaded == [(2021, 1)]


def test_forward_ineligible_when_anchor_equals_max_date(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig(max_date=date(2021, 6, 15)))

    assert cal.anchor_date == date(2021, 6, 15)
    assert not cal.can_paginate(FORWARD)
    assert cal.request_next(FORWARD) is None
    assert cal.can_paginate(BACKWARD)


def test_unbounded_never_completes(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig())

    for _ in range(1000):
        assert cal.request_next(FORWARD) is not None
        assert cal.request_next(BACKWARD) is not None

    assert recorder.completed == []
    assert len(cal.months(FORWARD)) == 1000
    assert len(cal.months(BACKWARD)) == 1000
    assert _ym(cal, FORWARD)[-1] == (2104, 9)
    assert _ym(cal, BACKWARD)[-1] == (1938, 2)


def test_month_loaded_fires_after_deferred_delivery(recorder: Recorder, scheduler) -> None:
    cal = recorder.calendar(CalendarConfig(), defer=scheduler)

    cal.request_next(FORWARD)
    assert cal.status(FORWARD) is PagingStatus.LOADING
    assert recorder.loaded == []
    assert cal.request_next(FORWARD) is None

    scheduler.run_all()

    assert recorder.loaded == [(2021, 6)]
    assert cal.status(FORWARD) is PagingStatus.IDLE


def test_directions_are_independent(recorder: Recorder, scheduler) -> None:
    cal = recorder.calendar(CalendarConfig(), defer=scheduler)

    cal.request_next(FORWARD)
    cal.request_next(BACKWARD)
    assert len(scheduler.pending) == 2

    scheduler.run_reversed()

    assert recorder.loaded == [(2021, 5), (2021, 6)]


def test_out_of_order_delivery_keeps_key_order(recorder: Recorder, scheduler) -> None:
    cal = recorder.calendar(CalendarConfig(), defer=scheduler, max_in_flight=3)

    for _ in range(3):
        cal.request_next(FORWARD)
    scheduler.run_reversed()

    assert _ym(cal, FORWARD) == [(2021, 6), (2021, 7), (2021, 8)]
    assert recorder.loaded == [(2021, 6), (2021, 7), (2021, 8)]


def test_reconfigure_discards_stale_results(recorder: Recorder, scheduler) -> None:
    cal = recorder.calendar(CalendarConfig(), defer=scheduler)
    cal.request_next(FORWARD)

    assert cal.configure(CalendarConfig(initial_date=date(2030, 1, 1)))
    scheduler.run_all()

    assert cal.months(FORWARD) == []
    assert recorder.loaded == []

    cal.request_next(FORWARD)
    scheduler.run_all()
    assert _ym(cal, FORWARD) == [(2030, 1)]


def test_configure_without_bound_changes_keeps_months(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig())
    cal.request_next(FORWARD)

    assert not cal.configure(CalendarConfig(invisible_months_threshold=3, keep_alive=True))
    assert len(cal.months(FORWARD)) == 1
    assert cal.config.invisible_months_threshold == 3


def test_changing_week_start_resets(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig())
    cal.request_next(FORWARD)

    assert cal.configure(CalendarConfig(start_week_with_sunday=True))
    cal.request_next(FORWARD)

    assert cal.months(FORWARD)[0].weeks[0].first_day == date(2021, 5, 30)


def test_completion_not_refired_after_reset(recorder: Recorder) -> None:
    config = CalendarConfig(min_date=date(2021, 5, 20))
    cal = recorder.calendar(config)

    cal.request_next(BACKWARD)
    assert recorder.completed == [BACKWARD]

    cal.refresh()
    assert recorder.completed == [BACKWARD]
    assert cal.status(BACKWARD) is PagingStatus.IDLE

    cal.request_next(BACKWARD)
    assert recorder.completed == [BACKWARD, BACKWARD]


def test_computation_failure_puts_direction_in_error(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig(initial_date=date(9999, 11, 1)))

    cal.request_next(FORWARD)
    # December 9999 would need padding days from the year 10000
    assert cal.request_next(FORWARD) == 1

    assert cal.status(FORWARD) is PagingStatus.ERROR
    assert isinstance(cal.cursor(FORWARD).error, ComputationFailure)
    assert _ym(cal, FORWARD) == [(9999, 11)]

    # retry re-issues the same key and fails the same way
    assert cal.request_next(FORWARD) == 1
    assert cal.status(FORWARD) is PagingStatus.ERROR

    # the other direction keeps working
    cal.request_next(BACKWARD)
    assert _ym(cal, BACKWARD) == [(9999, 10)]


def test_ensure_loaded_respects_threshold(recorder: Recorder) -> None:
    cal = recorder.calendar(CalendarConfig(invisible_months_threshold=2))

    while cal.ensure_loaded(FORWARD, visible_index=-1) is not None:
        pass
    assert len(cal.months(FORWARD)) == 3

    assert cal.ensure_loaded(FORWARD, visible_index=0) == 3
    assert len(cal.months(FORWARD)) == 4
    assert cal.ensure_loaded(FORWARD, visible_index=0) is None


def test_raising_month_listener_keeps_paginating() -> None:
    calls: list[tuple[int, int]] = []

    def on_month_loaded(year: int, month: int) -> None:
        calls.append((year, month))
        if len(calls) == 1:
            raise RuntimeError("ui hiccup")

    cal = PagedCalendar(
        CalendarConfig(), on_month_loaded=on_month_loaded, today=lambda: date(2021, 6, 15)
    )

    assert cal.request_next(FORWARD) == 0
    assert cal.status(FORWARD) is PagingStatus.IDLE
    assert cal.request_next(FORWARD) == 1
    assert cal.request_next(FORWARD) == 2

    assert _ym(cal, FORWARD) == [(2021, 6), (2021, 7), (2021, 8)]
    assert calls == [(2021, 6), (2021, 7), (2021, 8)]


def test_raising_month_listener_with_deferred_delivery(scheduler) -> None:
    calls: list[tuple[int, int]] = []

    def on_month_loaded(year: int, month: int) -> None:
        calls.append((year, month))
        if len(calls) == 1:
            raise RuntimeError("ui hiccup")

    cal = PagedCalendar(
        CalendarConfig(),
        on_month_loaded=on_month_loaded,
        defer=scheduler,
        today=lambda: date(2021, 6, 15),
    )

    for _ in range(3):
        cal.request_next(FORWARD)
        scheduler.run_all()

    assert _ym(cal, FORWARD) == [(2021, 6), (2021, 7), (2021, 8)]
    assert cal.status(FORWARD) is PagingStatus.IDLE


def test_every_registered_listener_receives_events() -> None:
    first: list[tuple[int, int]] = []
    second: list[tuple[int, int]] = []
    completed_a: list[PaginationDirection] = []
    completed_b: list[PaginationDirection] = []

    cal = PagedCalendar(
        CalendarConfig(min_date=date(2021, 5, 20)),
        on_month_loaded=lambda y, m: first.append((y, m)),
        on_pagination_completed=completed_a.append,
        today=lambda: date(2021, 6, 15),
    )
    cal.add_month_loaded_listener(lambda y, m: second.append((y, m)))
    cal.add_pagination_completed_listener(completed_b.append)

    cal.request_next(BACKWARD)

    assert first == second == [(2021, 5)]
    assert completed_a == completed_b == [BACKWARD]
