"""Link path record and its state."""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..geometry.geodesy import path_length
from .geo import Coordinate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PathState(str, Enum):
    """Where a link's current path came from.

    Transitions:
        uncomputed           -> computed_by_provider | fallback_straight
        computed_by_provider -> computed_by_provider (forced) | manually_edited
        fallback_straight    -> computed_by_provider | manually_edited
        manually_edited      -> manually_edited
                                (non-forced batch recomputes leave it alone)
        any                  -> fallback_straight (explicit reset)
    """

    UNCOMPUTED = "uncomputed"
    COMPUTED_BY_PROVIDER = "computed_by_provider"
    MANUALLY_EDITED = "manually_edited"
    FALLBACK_STRAIGHT = "fallback_straight"


class LinkPath(BaseModel):
    """Geographic route drawn for one network link.

    Records are immutable. A mutation builds a new record with ``build`` so
    ``points`` and ``distance_meters`` are always replaced together.
    """

    model_config = ConfigDict(frozen=True)

    link_id: str = Field(..., description="Link identifier, stable across edits")
    points: tuple[Coordinate, ...] = Field(
        ..., min_length=2, description="Ordered path points, source first, target last"
    )
    state: PathState = Field(default=PathState.UNCOMPUTED, description="Path origin")
    distance_meters: float = Field(
        ..., ge=0, description="Great-circle length of the path in meters"
    )
    last_updated: datetime = Field(default_factory=_utcnow)
    provider: str | None = Field(
        default=None, description="Routing provider that produced a computed path"
    )

    @model_validator(mode="after")
    def _check_distance(self) -> "LinkPath":
        expected = path_length(self.points)
        if not math.isclose(self.distance_meters, expected, rel_tol=1e-9, abs_tol=1e-6):
            raise ValueError(
                f"distance_meters {self.distance_meters} does not match points "
                f"({expected})"
            )
        return self

    @classmethod
    def build(
        cls,
        link_id: str,
        points: Sequence[Coordinate | Any],
        state: PathState,
        provider: str | None = None,
    ) -> "LinkPath":
        """Create a record with ``distance_meters`` derived from ``points``."""
        coords = tuple(
            p if isinstance(p, Coordinate) else Coordinate.model_validate(p)
            for p in points
        )
        return cls(
            link_id=link_id,
            points=coords,
            state=state,
            distance_meters=path_length(coords),
            provider=provider,
        )

    @property
    def source(self) -> Coordinate:
        return self.points[0]

    @property
    def target(self) -> Coordinate:
        return self.points[-1]

    @property
    def is_straight(self) -> bool:
        return len(self.points) == 2

    def to_summary(self) -> dict[str, Any]:
        """Compact view for listings."""
        return {
            "link_id": self.link_id,
            "state": self.state.value,
            "num_points": len(self.points),
            "distance_meters": round(self.distance_meters, 1),
            "provider": self.provider,
            "last_updated": self.last_updated.isoformat(),
        }
