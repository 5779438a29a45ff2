from typing import Any, Dict


class CatalogError(Exception):
    """Base class for errors reported to clients as a failure envelope.

    Keyword arguments become context fields of the envelope, so callers can
    echo back the parameters that triggered the failure.
    """

    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class CatalogValidationError(CatalogError):
    """Caller input failed a precondition (missing filter, unknown name)."""

    status_code = 400


class ProviderError(CatalogError):
    """The catalog provider raised while serving the request."""

    status_code = 500
