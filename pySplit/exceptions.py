from __future__ import annotations


class SplitError(ValueError):
    """Base class for errors raised while searching for a split."""


class InsufficientDataError(SplitError):
    """Too few observations, or no variation in the predictor."""


class DegenerateGroupError(SplitError):
    """No candidate threshold leaves enough observations on both sides."""
