from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .geo import PixelPoint
from .stop import Stop


class ClusterState(str, Enum):
    ENTERING = "entering"
    STEADY = "steady"
    DYING = "dying"


def cluster_id_for(stops: tuple[Stop, ...] | list[Stop]) -> str:
    return "-".join(str(i) for i in sorted(s.id for s in stops))


@dataclass(slots=True)
class Cluster:
    """A map marker standing for one or more stops.

    Mutable on purpose: the presentation loop carries clusters from frame to
    frame and `advance` eases them towards their targets.
    """

    cluster_id: str
    stops: tuple[Stop, ...]
    position: PixelPoint
    target_position: PixelPoint
    animated_position: PixelPoint
    scale: float = 1.0
    target_scale: float = 1.0
    alpha: float = 1.0
    target_alpha: float = 1.0
    state: ClusterState = ClusterState.ENTERING

    @classmethod
    def create(cls, position: PixelPoint, stops: tuple[Stop, ...]) -> Cluster:
        return cls(
            cluster_id=cluster_id_for(stops),
            stops=stops,
            position=position,
            target_position=position,
            animated_position=position,
        )

    @property
    def count(self) -> int:
        return len(self.stops)

    @property
    def is_cluster(self) -> bool:
        return len(self.stops) > 1

    @property
    def is_dying(self) -> bool:
        return self.state is ClusterState.DYING

    def stop_ids(self) -> frozenset[int]:
        return frozenset(s.id for s in self.stops)
