from .cluster import Cluster, ClusterState
from .geo import Geolocation, PixelPoint, TileXY
from .realtime import ActiveVehicle, Heading
from .route import Route, RouteKey, StopArrival
from .schedule import DayType, Schedule, StopTime
from .stop import Stop

__all__ = [
    "ActiveVehicle",
    "Cluster",
    "ClusterState",
    "DayType",
    "Geolocation",
    "Heading",
    "PixelPoint",
    "Route",
    "RouteKey",
    "Schedule",
    "Stop",
    "StopArrival",
    "StopTime",
    "TileXY",
]
