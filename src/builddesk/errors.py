"""Summary: Error taxonomy for BuildDesk triage and health scoring.

Importance: Lets callers tell bad input apart from missing data and upstream failures.
Alternatives: Raise builtin exceptions with message conventions only.
"""

from __future__ import annotations


class BuildDeskError(Exception):
    """Base class for all BuildDesk domain errors."""


class InvalidInput(BuildDeskError, ValueError):
    """Summary: Raised when a classifier or scorer receives malformed input.

    Importance: Prevents silently substituting a default category or score.
    Alternatives: Return a sentinel classification for empty text.
    """


class DivisionByZero(BuildDeskError, ZeroDivisionError):
    """Summary: Raised when a ratio has a zero denominator (e.g. zero budget).

    Importance: Surfaces undefined metrics instead of masking them as a clamped score.
    Alternatives: Return a neutral score when the denominator is zero.
    """


class UndefinedAggregate(BuildDeskError, ValueError):
    """Summary: Raised when aggregating an empty set of dimension results.

    Importance: The mean of an empty set is undefined and must not read as 0.
    Alternatives: Return an aggregate with a score of zero.
    """


class RecordNotFound(BuildDeskError, LookupError):
    """Summary: Raised when a ticket or other record id has no backing data.

    Importance: Propagates lookups that miss to the caller.
    Alternatives: Return None and let callers check.
    """


class UpstreamServiceFailure(BuildDeskError, RuntimeError):
    """Summary: Raised when an LLM or index call fails or times out.

    Importance: Marks the boundary where callers switch to deterministic fallbacks.
    Alternatives: Let transport exceptions propagate unchanged.
    """


class MalformedUpstreamResponse(UpstreamServiceFailure):
    """Summary: Raised when an upstream model answers with unusable content.

    Importance: Lets content generation treat parse failures like transport failures.
    Alternatives: Return None from the parser and null-check at call sites.
    """
