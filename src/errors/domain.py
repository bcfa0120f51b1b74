"""Typed domain exceptions raised at internal seams of the filter engine.

These never escape the public operations: the discovery client, the merge
engine and the filter tree catch them at their boundary and degrade to an
empty result or a no-op, preserving the caller's filter state.

Usage:
    # In the transport layer
    raise FieldDiscoveryError("users", ["tenant"], "HTTP 502")

    # At the client boundary
    try:
        nodes = await self._load(path)
    except FieldDiscoveryError as e:
        logger.warning("field discovery failed: %s", e)
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class FieldDiscoveryError(DomainError):
    """Field-tree fetch failed or returned an unusable payload."""

    def __init__(
        self,
        module: str,
        path: list[str] | tuple[str, ...],
        reason: str,
        *,
        malformed: bool = False,
    ) -> None:
        dotted = ".".join(path) or "<root>"
        super().__init__(f"Field discovery for '{module}' at '{dotted}' failed: {reason}")
        self.module = module
        self.path = list(path)
        self.reason = reason
        self.malformed = malformed


class MalformedFilterError(DomainError):
    """A filter descriptor does not have the expected shape."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed filter: {reason}")
        self.reason = reason


class InvalidRuleError(DomainError):
    """A rule cannot be added to a filter tree."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid rule on field '{field}': {reason}")
        self.field = field
        self.reason = reason


class SavedSearchStoreError(DomainError):
    """The saved-search store rejected a request or could not be reached."""

    def __init__(self, module: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Saved searches for '{module}': {reason}")
        self.module = module
        self.reason = reason
        self.status_code = status_code
