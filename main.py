"""Entry point: parse overrides, load settings, open the calendar window."""

from __future__ import annotations

import argparse
import ctypes
import logging
import sys
from dataclasses import replace
from datetime import date

from calendar_logic import PaginationDirection
from paged_calendar import CalendarConfig
from settings import config_from_settings, load_settings

logger = logging.getLogger("paged_calendar")


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO date: {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Infinitely scrolling calendar with optional date bounds."
    )
    parser.add_argument("--min-date", type=_iso_date, help="earliest date (YYYY-MM-DD)")
    parser.add_argument("--max-date", type=_iso_date, help="latest date (YYYY-MM-DD)")
    parser.add_argument("--initial-date", type=_iso_date, help="date to open at")
    parser.add_argument(
        "--sunday", action="store_true", default=None,
        help="start weeks on Sunday instead of Monday",
    )
    parser.add_argument(
        "--threshold", type=int, metavar="MONTHS",
        help="months to load beyond the visible range",
    )
    parser.add_argument(
        "--keep-alive", action="store_true", default=None,
        help="keep loaded months while the window is minimised",
    )
    parser.add_argument("--settings", help="path of the settings file")
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def resolve_config(args: argparse.Namespace, settings: dict) -> CalendarConfig:
    """Return the stored configuration with command-line overrides applied."""
    config = config_from_settings(settings)
    overrides = {
        "min_date": args.min_date,
        "max_date": args.max_date,
        "initial_date": args.initial_date,
        "start_week_with_sunday": args.sunday,
        "invisible_months_threshold": args.threshold,
        "keep_alive": args.keep_alive,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = resolve_config(args, load_settings(args.settings))
    except ValueError as exc:
        parser.error(str(exc))

    # DPI awareness so fonts are crisp on Hi-DPI monitors
    if sys.platform == "win32":
        try:
            ctypes.windll.shcore.SetProcessDpiAwareness(1)
        except (AttributeError, OSError):
            logger.debug("DPI awareness not available")

    from calendar_window import CalendarWindow

    def on_day_pressed(day: date) -> None:
        logger.info("Day selected: %s", day.isoformat())

    def on_month_loaded(year: int, month: int) -> None:
        logger.debug("Month loaded: %d-%02d", year, month)

    def on_pagination_completed(direction: PaginationDirection) -> None:
        logger.info("No more months %s", direction.value)

    window = CalendarWindow(
        config,
        on_day_pressed=on_day_pressed,
        on_month_loaded=on_month_loaded,
        on_pagination_completed=on_pagination_completed,
        settings_file=args.settings,
    )
    window.show()
    window.root.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
