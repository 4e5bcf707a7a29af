"""Errors raised while producing calendar pages."""

from __future__ import annotations


class PaginationError(Exception):
    """Base class for failures that leave a cursor in the error state."""


class ComputationFailure(PaginationError):
    """Calendar arithmetic could not produce the requested month."""


class FetchFailure(PaginationError):
    """Any other failure raised while loading a page."""


__all__ = ["PaginationError", "ComputationFailure", "FetchFailure"]
