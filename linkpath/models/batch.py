"""Batch route computation input and result models."""

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .geo import Coordinate


class LinkRouteRequest(BaseModel):
    """One link to route: its id and current endpoint coordinates."""

    model_config = ConfigDict(frozen=True)

    link_id: str = Field(..., description="Link identifier")
    source: Coordinate = Field(..., description="Source node coordinate")
    target: Coordinate = Field(..., description="Target node coordinate")


class BatchResult(BaseModel):
    """Outcome of a batch route computation.

    Links in ``failed`` still have a usable (straight-line) path in the
    store; links in ``skipped`` were manually edited and left untouched.
    """

    succeeded: list[str] = Field(default_factory=list, description="Links routed by a provider")
    failed: list[str] = Field(default_factory=list, description="Links that fell back to a straight line")
    skipped: list[str] = Field(default_factory=list, description="Manually edited links not recomputed")
    failures: dict[str, str] = Field(
        default_factory=dict, description="Link ID -> failure message"
    )

    @computed_field
    @property
    def total_routed(self) -> int:
        """Links that were actually sent to the provider."""
        return len(self.succeeded) + len(self.failed)

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def warning_message(self) -> str | None:
        """Single aggregate warning for the operator, or None if nothing failed."""
        if not self.failed:
            return None
        return (
            f"{len(self.failed)} of {self.total_routed} links could not be routed "
            f"by road; showing direct lines"
        )
