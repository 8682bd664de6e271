"""Exception hierarchy for the standings and games sync.

Everything derives from ``SyncError`` so the invocation boundary (cron route or
one-shot runner) can turn any fatal failure into a single failure response.
"""

from typing import Iterable, List, Optional


class SyncError(Exception):
    """Base class for all sync failures."""

    pass


class ConfigurationError(SyncError):
    """Missing or inconsistent configuration (API keys, seeded teams)."""

    pass


class TeamSeedError(ConfigurationError):
    """The canonical team table does not hold the expected roster."""

    def __init__(self, expected: int, found: int):
        self.expected = expected
        self.found = found
        super().__init__(
            f"Expected {expected} teams in database but found {found}. "
            f"Teams must be seeded before the sync can run."
        )


# --- Upstream (SerpApi) ---


class ScraperError(SyncError):
    """Custom exception for upstream search errors."""

    pass


class TransportError(ScraperError):
    """The upstream could not be reached or answered with a non-2xx status."""

    def __init__(self, status: Optional[int], reason: str):
        self.status = status
        self.reason = reason
        if status is None:
            super().__init__(f"SerpApi request failed: {reason}")
        else:
            super().__init__(f"SerpApi returned error status {status}: {reason}")


class UpstreamApiError(ScraperError):
    """SerpApi answered but reported an application-level error."""

    def __init__(self, message: str):
        self.upstream_message = message
        super().__init__(f"SerpApi API error: {message}")


# --- Parsing ---


class ParseError(SyncError):
    """A response could not be turned into typed records."""

    pass


class MissingResultsError(ParseError):
    """The ``sports_results`` container (or its league block) is absent."""

    def __init__(self, message: str, query: str, search_id: str):
        self.query = query
        self.search_id = search_id
        super().__init__(message)


class EmptyStandingsError(ParseError):
    """The standings list is absent or empty."""

    def __init__(self, message: str, query: str, search_id: str):
        self.query = query
        self.search_id = search_id
        super().__init__(message)


class RowParseError(ParseError):
    """A present standings row is malformed."""

    def __init__(self, message: str, query: str, row_index: int):
        self.query = query
        self.row_index = row_index
        super().__init__(message)


# --- Reconciliation ---


class UnresolvedNameError(SyncError):
    """One or more upstream team names map to no canonical team."""

    def __init__(
        self,
        names: Iterable[str],
        known_names: Iterable[str],
        context: Optional[str] = None,
    ):
        self.names: List[str] = list(names)
        self.known_names: List[str] = list(known_names)
        quoted = ", ".join(f'"{n}"' for n in self.names)
        message = (
            f"Could not map {len(self.names)} team name(s) to a canonical team: {quoted}. "
            f"Available teams: {', '.join(self.known_names)}."
        )
        if context:
            message = f"{message} {context}"
        super().__init__(message)


# --- Integrity ---


class IntegrityError(SyncError):
    """A reconciled record set violates a cardinality or uniqueness rule."""

    pass


class PartitionMismatchError(IntegrityError):
    """A team turned up in the other league's standings."""

    pass


class CardinalityError(IntegrityError):
    """A record set does not hold the expected number of rows."""

    def __init__(self, message: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class DuplicateKeyError(IntegrityError):
    """Two records share a natural key."""

    def __init__(self, message: str, keys: Iterable[object]):
        self.keys = list(keys)
        super().__init__(message)


# --- Storage ---


class StorageError(SyncError):
    """A Supabase read or write failed."""

    pass
