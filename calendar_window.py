"""Infinitely scrolling calendar window (tkinter).

Backward months stack above a fixed origin, forward months below it. More
months are requested whenever the viewport gets within
``invisible_months_threshold`` months of either loaded end.
"""

from __future__ import annotations

import logging
import sys
import tkinter as tk
from datetime import date
from tkinter import font as tkfont

from PIL import ImageTk

from calendar_logic import (
    Month,
    PaginationDirection,
    day_headers,
    day_of_year,
    month_grid,
    weekend_columns,
)
from icon_gen import create_icon_image
from paged_calendar import CalendarConfig, PagedCalendar
from pagination import PagingStatus
from renderers import (
    DayPressed,
    DayRenderer,
    MonthRenderer,
    default_day_label,
    default_month_header,
)
from settings import load_settings, save_settings

logger = logging.getLogger(__name__)

# Colours
ACCENT = "#0078D4"
HEADER_BG = "#F3F3F3"
GRID_BG = "white"
WEEKEND_FG = "#CC0000"
STATUS_FG = "#888888"

BACKWARD = PaginationDirection.BACKWARD
FORWARD = PaginationDirection.FORWARD


class _MonthPanel:
    """Header, weekday row and day cells for one loaded month."""

    __slots__ = ("frame", "month")

    def __init__(
        self,
        parent: tk.Frame,
        fonts: dict,
        month: Month,
        *,
        month_renderer: MonthRenderer,
        day_renderer: DayRenderer,
        on_day_pressed: DayPressed | None,
        start_week_with_sunday: bool,
        today: date,
    ) -> None:
        self.month = month
        self.frame = tk.Frame(parent, bg=GRID_BG)

        header = tk.Label(
            self.frame,
            text=month_renderer(month.year, month.month, month.weeks),
            font=fonts["header"],
            bg=HEADER_BG,
            fg="#333333",
            anchor="w",
            padx=8,
        )
        header.grid(row=0, column=0, columnspan=7, sticky="we", pady=(0, 2))

        weekend = weekend_columns(start_week_with_sunday)
        for col, abbr in enumerate(day_headers(start_week_with_sunday)):
            tk.Label(
                self.frame,
                text=abbr,
                font=fonts["bold"],
                bg=GRID_BG,
                fg=WEEKEND_FG if col in weekend else "#333333",
                width=4,
            ).grid(row=1, column=col)

        for r, row in enumerate(month_grid(month)):
            for c, day in enumerate(row):
                if day is None:
                    tk.Label(self.frame, bg=GRID_BG, width=4).grid(row=r + 2, column=c)
                    continue
                is_today = day == today
                cell = tk.Label(
                    self.frame,
                    text=day_renderer(day),
                    font=fonts["bold"] if is_today else fonts["normal"],
                    bg=ACCENT if is_today else GRID_BG,
                    fg="white" if is_today else (
                        WEEKEND_FG if c in weekend else "black"
                    ),
                    width=4,
                    pady=4,
                    cursor="hand2" if on_day_pressed else "",
                )
                cell.grid(row=r + 2, column=c)
                if on_day_pressed is not None:
                    cell.bind("<Button-1>", lambda _e, d=day: on_day_pressed(d))

        tk.Frame(self.frame, bg=GRID_BG, height=20).grid(
            row=len(month.weeks) + 2, column=0, columnspan=7
        )


class CalendarWindow:
    """Scrollable month list driven by a :class:`PagedCalendar`."""

    def __init__(
        self,
        config: CalendarConfig | None = None,
        *,
        month_renderer: MonthRenderer = default_month_header,
        day_renderer: DayRenderer = default_day_label,
        on_day_pressed: DayPressed | None = None,
        on_month_loaded=None,
        on_pagination_completed=None,
        settings_file: str | None = None,
    ) -> None:
        self.root = tk.Tk()
        self.root.title(self._title())
        self.root.configure(bg=GRID_BG)
        self._icon = ImageTk.PhotoImage(create_icon_image())
        self.root.iconphoto(True, self._icon)

        self._setup_fonts()

        self._settings_file = settings_file
        settings = load_settings(settings_file)
        self._saved_width: int | None = settings["window_width"]
        self._saved_height: int | None = settings["window_height"]

        self._month_renderer = month_renderer
        self._day_renderer = day_renderer
        self._on_day_pressed = on_day_pressed
        self._panels: dict[PaginationDirection, list[_MonthPanel]] = {
            BACKWARD: [],
            FORWARD: [],
        }
        self._generations: dict[PaginationDirection, int] = {}
        self._check_after_id: str | None = None
        self._stale = False

        self.calendar = PagedCalendar(config, defer=self.root.after_idle)
        if on_month_loaded is not None:
            self.calendar.add_month_loaded_listener(on_month_loaded)
        if on_pagination_completed is not None:
            self.calendar.add_pagination_completed_listener(on_pagination_completed)
        for direction in (BACKWARD, FORWARD):
            self.calendar.cursor(direction).add_status_listener(
                lambda status, d=direction: self._on_status(d, status)
            )

        self._build_shell()
        self._sync_all()

        self.root.bind("<Configure>", self._on_configure)
        self.root.bind("<Unmap>", self._on_unmap)
        self.root.bind("<Map>", self._on_map)
        self.root.bind("<Escape>", lambda _e: self.scroll_to_origin())
        self.root.protocol("WM_DELETE_WINDOW", self.close)

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------
    def _setup_fonts(self) -> None:
        families = tkfont.families(self.root)
        base = "Segoe UI" if "Segoe UI" in families else "TkDefaultFont"
        self._fonts = {
            "normal": tkfont.Font(family=base, size=9),
            "bold": tkfont.Font(family=base, size=9, weight="bold"),
            "header": tkfont.Font(family=base, size=11, weight="bold"),
        }

    @staticmethod
    def _title() -> str:
        return f"Paged Calendar  Day: {day_of_year(date.today())}"

    # ------------------------------------------------------------------
    # Build shell (once): nav bar, scrollable canvas, edge status labels
    # ------------------------------------------------------------------
    def _build_shell(self) -> None:
        nav = tk.Frame(self.root, bg=GRID_BG)
        nav.pack(fill="x", padx=6, pady=(4, 2))
        btn_today = tk.Label(
            nav, text="Today", font=self._fonts["bold"], bg=GRID_BG, fg=ACCENT,
            cursor="hand2",
        )
        btn_today.pack(side="left", padx=6)
        btn_today.bind("<Button-1>", lambda _e: self.scroll_to_origin())

        body = tk.Frame(self.root, bg=GRID_BG)
        body.pack(fill="both", expand=True)
        self._canvas = tk.Canvas(body, bg=GRID_BG, highlightthickness=0, width=320)
        scrollbar = tk.Scrollbar(body, orient="vertical", command=self._canvas.yview)

        def on_scroll(first: str, last: str) -> None:
            scrollbar.set(first, last)
            self._schedule_check()

        self._canvas.configure(yscrollcommand=on_scroll)
        scrollbar.pack(side="right", fill="y")
        self._canvas.pack(side="left", fill="both", expand=True)

        self._content = tk.Frame(self._canvas, bg=GRID_BG)
        self._canvas.create_window((0, 0), window=self._content, anchor="nw")

        self._edge_labels: dict[PaginationDirection, tk.Label] = {}
        self._lists: dict[PaginationDirection, tk.Frame] = {}
        for direction in (BACKWARD, FORWARD):
            label = tk.Label(
                self._content, font=self._fonts["normal"], bg=GRID_BG, fg=STATUS_FG,
            )
            label.bind("<Button-1>", lambda _e, d=direction: self._retry(d))
            self._edge_labels[direction] = label
            self._lists[direction] = tk.Frame(self._content, bg=GRID_BG)

        self._edge_labels[BACKWARD].pack(fill="x")
        self._lists[BACKWARD].pack(fill="x")
        self._origin = tk.Frame(self._content, bg=GRID_BG, height=1)
        self._origin.pack(fill="x")
        self._lists[FORWARD].pack(fill="x")
        self._edge_labels[FORWARD].pack(fill="x")

        self._canvas.bind_all("<MouseWheel>", self._on_mousewheel)
        self._canvas.bind_all("<Button-4>", lambda _e: self._canvas.yview_scroll(-1, "units"))
        self._canvas.bind_all("<Button-5>", lambda _e: self._canvas.yview_scroll(1, "units"))

    # ------------------------------------------------------------------
    # Keep panels in step with the cursors
    # ------------------------------------------------------------------
    def _on_status(self, direction: PaginationDirection, status: PagingStatus) -> None:
        if status is PagingStatus.LOADING:
            self._update_edge_label(direction)
            return
        self._sync(direction)
        self._schedule_check()

    def _sync_all(self) -> None:
        for direction in (BACKWARD, FORWARD):
            self._sync(direction)
        self._schedule_check()

    def _sync(self, direction: PaginationDirection) -> None:
        cursor = self.calendar.cursor(direction)
        panels = self._panels[direction]
        if self._generations.get(direction) != cursor.generation:
            for panel in panels:
                panel.frame.destroy()
            panels.clear()
            self._generations[direction] = cursor.generation

        months = self.calendar.months(direction)
        if len(panels) < len(months):
            self._content.update_idletasks()
            origin_before = self._origin.winfo_y()
            view_top = self._canvas.canvasy(0)
            today = date.today()
            for month in months[len(panels):]:
                panel = _MonthPanel(
                    self._lists[direction],
                    self._fonts,
                    month,
                    month_renderer=self._month_renderer,
                    day_renderer=self._day_renderer,
                    on_day_pressed=self._on_day_pressed,
                    start_week_with_sunday=self.calendar.config.start_week_with_sunday,
                    today=today,
                )
                if direction is BACKWARD and panels:
                    panel.frame.pack(fill="x", before=panels[-1].frame)
                else:
                    panel.frame.pack(fill="x")
                panels.append(panel)
            self._content.update_idletasks()
            self._update_scrollregion()
            # Months inserted above the origin must not move the viewport
            shift = self._origin.winfo_y() - origin_before
            if shift:
                self._scroll_to_pixel(view_top + shift)
        self._update_edge_label(direction)

    def _update_edge_label(self, direction: PaginationDirection) -> None:
        label = self._edge_labels[direction]
        status = self.calendar.status(direction)
        if status is PagingStatus.ERROR:
            label.configure(text="Loading failed, click to retry", fg=WEEKEND_FG,
                            cursor="hand2")
        elif status is PagingStatus.LOADING:
            label.configure(text="Loading…", fg=STATUS_FG, cursor="")
        else:
            label.configure(text="", cursor="")

    def _retry(self, direction: PaginationDirection) -> None:
        if self.calendar.status(direction) is PagingStatus.ERROR:
            self.calendar.request_next(direction)

    # ------------------------------------------------------------------
    # Prefetch around the viewport
    # ------------------------------------------------------------------
    def _schedule_check(self) -> None:
        if self._check_after_id is None:
            self._check_after_id = self.root.after(30, self._check_edges)

    def _check_edges(self) -> None:
        self._check_after_id = None
        top = self._canvas.canvasy(0)
        bottom = top + self._canvas.winfo_height()
        for direction in (BACKWARD, FORWARD):
            if self.calendar.status(direction) is PagingStatus.ERROR:
                continue
            container = self._lists[direction]
            offset = container.winfo_y()
            visible = -1
            for i, panel in enumerate(self._panels[direction]):
                y = offset + panel.frame.winfo_y()
                if y < bottom and y + panel.frame.winfo_height() > top:
                    visible = i
            self.calendar.ensure_loaded(direction, visible)

    # ------------------------------------------------------------------
    # Scrolling
    # ------------------------------------------------------------------
    def _update_scrollregion(self) -> None:
        self._canvas.configure(scrollregion=self._canvas.bbox("all"))

    def _scroll_to_pixel(self, y: float) -> None:
        total = self._content.winfo_height()
        if total > 0:
            self._canvas.yview_moveto(max(0.0, y) / total)

    def scroll_to_origin(self) -> None:
        self._content.update_idletasks()
        self._scroll_to_pixel(self._origin.winfo_y())

    def _on_mousewheel(self, event: tk.Event) -> None:
        step = -1 if event.delta > 0 else 1
        if sys.platform == "darwin":
            step = -event.delta
        self._canvas.yview_scroll(step, "units")

    # ------------------------------------------------------------------
    # Keep-alive: drop loaded months while minimised unless asked not to
    # ------------------------------------------------------------------
    def _on_unmap(self, event: tk.Event) -> None:
        if event.widget is self.root and not self.calendar.config.keep_alive:
            self._stale = True

    def _on_map(self, event: tk.Event) -> None:
        if event.widget is not self.root or not self._stale:
            return
        self._stale = False
        logger.debug("Window restored without keep-alive, reloading months")
        self.calendar.refresh()
        self._sync_all()
        self.root.after_idle(self.scroll_to_origin)

    def reconfigure(self, config: CalendarConfig) -> None:
        if self.calendar.configure(config):
            self._sync_all()
            self.root.after_idle(self.scroll_to_origin)

    # ------------------------------------------------------------------
    # Window size persistence
    # ------------------------------------------------------------------
    def _on_configure(self, event: tk.Event) -> None:
        if event.widget is self.root:
            self._saved_width = self.root.winfo_width()
            self._saved_height = self.root.winfo_height()
        elif event.widget is self._canvas:
            self._schedule_check()

    def _persist_size(self) -> None:
        settings = load_settings(self._settings_file)
        settings["window_width"] = self._saved_width
        settings["window_height"] = self._saved_height
        save_settings(settings, self._settings_file)

    def show(self) -> None:
        if self._saved_width and self._saved_height:
            self.root.geometry(f"{self._saved_width}x{self._saved_height}")
        else:
            self.root.geometry("360x560")
        self.root.deiconify()
        self.root.update_idletasks()
        self.scroll_to_origin()
        self.root.lift()
        self.root.focus_force()

    def close(self) -> None:
        if self._saved_width is not None and self._saved_height is not None:
            try:
                self._persist_size()
            except OSError as exc:
                logger.warning("Could not save window size: %s", exc)
        self.root.destroy()
