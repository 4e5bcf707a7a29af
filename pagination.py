"""Single-direction incremental page cursor.

A cursor walks integer page keys from ``first_key`` in steps of ``step`` and
accumulates the items produced for each key. It never fetches anything on
its own: page requests are handed to listeners, which answer later through
:meth:`PaginationCursor.append_page` or :meth:`PaginationCursor.fail_page`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Sequence, TypeVar

from exceptions import FetchFailure, PaginationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PagingStatus(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class PageRequest:
    """Ticket for one outstanding page; stale once the cursor is reset."""

    key: int
    generation: int


PageRequestListener = Callable[[PageRequest], None]
PageListener = Callable[[int, Sequence[T]], None]
StatusListener = Callable[[PagingStatus], None]


class PaginationCursor(Generic[T]):
    """Lazily paginates in one direction, one key at a time by default."""

    def __init__(
        self,
        first_key: int = 0,
        step: int = 1,
        *,
        name: str = "",
        max_in_flight: int = 1,
    ) -> None:
        if step == 0:
            raise ValueError("step must be non-zero")
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self.first_key = first_key
        self.step = step
        self.name = name or f"cursor({first_key:+d}, {step:+d})"
        self.max_in_flight = max_in_flight
        self.enabled = True
        self.error: PaginationError | None = None

        self._request_listeners: list[PageRequestListener] = []
        self._page_listeners: list[PageListener] = []
        self._status_listeners: list[StatusListener] = []

        self._generation = 0
        self._status = PagingStatus.IDLE
        self._items: list[T] = []
        self._next_key = first_key  # next key to append
        self._issue_key = first_key  # next key to request
        self._last_key: int | None = None
        self._in_flight: set[int] = set()
        self._buffered: dict[int, tuple[list[T], bool]] = {}

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    @property
    def status(self) -> PagingStatus:
        return self._status

    @property
    def items(self) -> Sequence[T]:
        return self._items

    @property
    def next_key(self) -> int:
        """Key the next call to :meth:`request_next` would issue."""
        return self._issue_key

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def can_request(self) -> bool:
        if not self.enabled or self._status is PagingStatus.COMPLETED:
            return False
        if self._last_key is not None and self._index(self._issue_key) > self._index(
            self._last_key
        ):
            return False
        if self._status is PagingStatus.LOADED:
            return False
        if self._status is PagingStatus.LOADING and not self._in_flight:
            return False
        return len(self._in_flight) < self.max_in_flight

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_page_request_listener(self, listener: PageRequestListener) -> None:
        self._request_listeners.append(listener)

    def add_page_listener(self, listener: PageListener) -> None:
        self._page_listeners.append(listener)

    def add_status_listener(self, listener: StatusListener) -> None:
        self._status_listeners.append(listener)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    def request_next(self) -> int | None:
        """Issue the next page request; return its key, or None if not allowed."""
        if not self.can_request:
            return None

        key = self._issue_key
        self._issue_key = key + self.step
        self._in_flight.add(key)
        self.error = None
        request = PageRequest(key=key, generation=self._generation)
        logger.debug("%s: requesting page %d", self.name, key)
        self._set_status(PagingStatus.LOADING)

        for listener in list(self._request_listeners):
            try:
                listener(request)
            except PaginationError as exc:
                self.fail_page(request, exc)
            except Exception as exc:
                failure = FetchFailure(f"{self.name}: page {key} failed: {exc}")
                failure.__cause__ = exc
                self.fail_page(request, failure)
        return key

    def append_page(
        self, request: PageRequest, items: Iterable[T], is_last: bool = False
    ) -> bool:
        """Deliver the items for ``request``; return False if it was stale."""
        if self._is_stale(request):
            logger.debug(
                "%s: discarding stale page %d (generation %d, current %d)",
                self.name,
                request.key,
                request.generation,
                self._generation,
            )
            return False

        self._in_flight.discard(request.key)
        self._buffered[request.key] = (list(items), is_last)
        if is_last:
            self._last_key = request.key
        self._drain()
        return True

    def fail_page(self, request: PageRequest, error: PaginationError) -> bool:
        """Mark ``request`` as failed; the same key is re-issued on retry."""
        if self._is_stale(request):
            logger.debug("%s: ignoring failure of stale page %d", self.name, request.key)
            return False

        failed = self._index(request.key)
        self._in_flight = {k for k in self._in_flight if self._index(k) < failed}
        self._buffered = {
            k: page for k, page in self._buffered.items() if self._index(k) < failed
        }
        if self._last_key is not None and self._index(self._last_key) >= failed:
            self._last_key = None
        self._issue_key = request.key
        self.error = error
        logger.warning("%s: page %d failed: %s", self.name, request.key, error)
        self._set_status(PagingStatus.ERROR)
        return True

    def reset(self) -> None:
        """Drop all pages and restart at the first key.

        Requests issued before the reset become stale and their results are
        ignored when they arrive.
        """
        self._generation += 1
        self._items = []
        self._next_key = self.first_key
        self._issue_key = self.first_key
        self._last_key = None
        self._in_flight.clear()
        self._buffered.clear()
        self.error = None
        logger.debug("%s: reset to generation %d", self.name, self._generation)
        self._set_status(PagingStatus.IDLE)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _index(self, key: int) -> int:
        return (key - self.first_key) // self.step

    def _is_stale(self, request: PageRequest) -> bool:
        return (
            request.generation != self._generation
            or request.key not in self._in_flight
        )

    def _drain(self) -> None:
        appended = False
        while self._next_key in self._buffered:
            key = self._next_key
            items, is_last = self._buffered.pop(key)
            self._items.extend(items)
            appended = True
            if is_last:
                self._in_flight.clear()
                self._buffered.clear()
            else:
                self._next_key = key + self.step
            for listener in list(self._page_listeners):
                self._notify(listener, key, items)
            if is_last:
                self._set_status(PagingStatus.COMPLETED)
                return

        if appended and self._status is not PagingStatus.ERROR:
            self._set_status(PagingStatus.LOADED)
            self._set_status(
                PagingStatus.LOADING if self._in_flight else PagingStatus.IDLE
            )

    def _set_status(self, status: PagingStatus) -> None:
        if status is self._status:
            return
        self._status = status
        for listener in list(self._status_listeners):
            self._notify(listener, status)

    def _notify(self, listener: Callable[..., None], *args) -> None:
        # listener errors are logged, never propagated
        try:
            listener(*args)
        except Exception:
            logger.exception("%s: listener %r failed", self.name, listener)


__all__ = [
    "PageRequest",
    "PaginationCursor",
    "PagingStatus",
]
