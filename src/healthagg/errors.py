"""Error taxonomy for the aggregation engine."""

from __future__ import annotations


class HealthAggError(Exception):
    """Base class for all healthagg errors."""


class SourceUnavailable(HealthAggError):
    """A source fetch failed or timed out.

    Never reaches the caller of ``build_window``: it is turned into a
    :class:`~healthagg.models.SourceWarning` and the source's fields are
    zero-filled.
    """

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class InvalidVariantConfiguration(HealthAggError):
    """A scoring variant failed validation at load time."""

    def __init__(self, variant: str, reason: str) -> None:
        super().__init__(f"invalid scoring variant {variant!r}: {reason}")
        self.variant = variant
        self.reason = reason


class MalformedRecord(HealthAggError):
    """A single raw event could not be parsed; only that event is dropped."""
