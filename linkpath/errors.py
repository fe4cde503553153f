"""Exception types raised by the link path engine.

Provider errors are per-link and are absorbed by the batch service
(the link falls back to a straight line). Structural errors propagate
to the immediate caller.
"""


class LinkPathError(Exception):
    """Base class for all link path engine errors."""


# ----------------------------------------------------------------------------
# Routing provider errors
# ----------------------------------------------------------------------------


class ProviderError(LinkPathError):
    """A routing provider could not return a usable route."""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        if provider:
            message = f"{provider}: {message}"
        super().__init__(message)


class ProviderUnavailable(ProviderError):
    """Provider unreachable, refused the request, or returned a non-2xx status."""


class ProviderTimeout(ProviderError):
    """Provider did not answer within the per-link timeout."""


class ProviderMalformedResponse(ProviderError):
    """Provider answered but the payload has no usable route geometry."""


# ----------------------------------------------------------------------------
# Structural errors
# ----------------------------------------------------------------------------


class LinkNotFound(LinkPathError, KeyError):
    """No path record exists for the requested link."""

    def __init__(self, link_id: str):
        self.link_id = link_id
        super().__init__(f"Link '{link_id}' not found")

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return self.args[0]


class DegenerateGeometry(LinkPathError, ValueError):
    """A write would leave a path with fewer than two points."""

    def __init__(self, link_id: str, point_count: int):
        self.link_id = link_id
        self.point_count = point_count
        super().__init__(
            f"Path for link '{link_id}' needs at least 2 points, got {point_count}"
        )


class InvalidPointIndex(LinkPathError, IndexError):
    """An edit referenced a point index that is out of range or an endpoint."""

    def __init__(self, link_id: str, index: int, reason: str):
        self.link_id = link_id
        self.index = index
        super().__init__(f"Invalid point index {index} for link '{link_id}': {reason}")


class ConfigNotFound(LinkPathError, FileNotFoundError):
    """Named engine configuration does not exist."""
