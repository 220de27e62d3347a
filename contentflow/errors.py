"""Error taxonomy for content generation workflows."""

from __future__ import annotations


class ContentflowError(Exception):
    """Base class for all contentflow errors."""


class ConfigurationError(ContentflowError):
    """Static configuration is broken, e.g. a phase has no definition."""


class GatewayError(ContentflowError):
    """The completion gateway failed to produce text."""


class GatewayTimeoutError(GatewayError):
    """The completion gateway did not answer within the allotted time."""

    def __init__(self, timeout: float):
        super().__init__(f"Completion request timed out after {timeout:g}s")
        self.timeout = timeout


class WorkflowValidationError(ContentflowError):
    """An operator request was rejected before any state changed."""


class NotFoundError(ContentflowError):
    """A workflow, job or report could not be found."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier
