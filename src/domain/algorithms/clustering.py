from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from src.domain.models import Cluster, ClusterState, PixelPoint, Stop

logger = logging.getLogger(__name__)

BASE_CLUSTER_DISTANCE_PX = 80.0

# Camera zoom grows as the map zooms out; bucket 0 shows every stop.
ZOOM_LEVELS = (0.0, 0.15, 0.3, 0.5, 0.8, 1.2)
CLUSTER_MULTIPLIERS = (0.0, 1.5, 3.0, 5.0, 10.0, 20.0)
SUPER_CLUSTER_MIN_LEVEL = 3
SUPER_CLUSTER_FACTOR = 1.5

ENTER_SCALE = 0.3
ENTER_ALPHA = 0.0
SPLIT_ALPHA = 0.8
DYING_SCALE = 0.3
STEADY_ALPHA = 0.95
REMOVE_ALPHA = 0.05
POSITION_EPSILON_PX = 1.0
DEFAULT_EASE_RATE = 4.0

Viewport = tuple[float, float, float, float]  # min_x, min_y, max_x, max_y


@dataclass(frozen=True, slots=True)
class _Group:
    position: PixelPoint
    stops: tuple[Stop, ...]


def zoom_bucket(zoom: float) -> int:
    for i in range(len(ZOOM_LEVELS) - 1, -1, -1):
        if zoom >= ZOOM_LEVELS[i]:
            return i
    return 0


def merge_distance(zoom: float) -> float:
    return BASE_CLUSTER_DISTANCE_PX * CLUSTER_MULTIPLIERS[zoom_bucket(zoom)]


def _in_viewport(p: PixelPoint, viewport: Viewport | None) -> bool:
    if not (math.isfinite(p.x) and math.isfinite(p.y)):
        return False
    if viewport is None:
        return True
    min_x, min_y, max_x, max_y = viewport
    return min_x <= p.x <= max_x and min_y <= p.y <= max_y


def _initial_groups(
    items: Sequence[tuple[Stop, PixelPoint]], distance: float
) -> list[_Group]:
    """Greedy single pass: each unclaimed stop seeds a group and absorbs later
    stops within `distance` of the group's running centroid."""

    groups: list[_Group] = []
    claimed = [False] * len(items)

    for i, (stop, pos) in enumerate(items):
        if claimed[i]:
            continue
        claimed[i] = True
        members = [stop]
        cx, cy = pos.x, pos.y

        for j in range(i + 1, len(items)):
            if claimed[j]:
                continue
            other_stop, other_pos = items[j]
            if math.hypot(cx - other_pos.x, cy - other_pos.y) < distance:
                members.append(other_stop)
                k = len(members)
                cx = (cx * (k - 1) + other_pos.x) / k
                cy = (cy * (k - 1) + other_pos.y) / k
                claimed[j] = True

        groups.append(_Group(position=PixelPoint(cx, cy), stops=tuple(members)))

    return groups


def _super_groups(groups: list[_Group], distance: float) -> list[_Group]:
    """Merge first-pass groups, weighting centroids by member count."""

    if len(groups) <= 1:
        return groups

    out: list[_Group] = []
    claimed = [False] * len(groups)

    for i, group in enumerate(groups):
        if claimed[i]:
            continue
        claimed[i] = True
        members = list(group.stops)
        cx, cy = group.position.x, group.position.y

        for j in range(i + 1, len(groups)):
            if claimed[j]:
                continue
            other = groups[j]
            if math.hypot(cx - other.position.x, cy - other.position.y) < distance:
                n_before = len(members)
                members.extend(other.stops)
                n = len(members)
                cx = (cx * n_before + other.position.x * len(other.stops)) / n
                cy = (cy * n_before + other.position.y * len(other.stops)) / n
                claimed[j] = True

        out.append(_Group(position=PixelPoint(cx, cy), stops=tuple(members)))

    return out


def group_stops(
    stops: Sequence[Stop],
    pixel_positions: Mapping[int, PixelPoint],
    zoom: float,
    viewport: Viewport | None = None,
) -> list[_Group]:
    items = [
        (s, pixel_positions[s.id])
        for s in stops
        if s.id in pixel_positions and _in_viewport(pixel_positions[s.id], viewport)
    ]

    level = zoom_bucket(zoom)
    distance = BASE_CLUSTER_DISTANCE_PX * CLUSTER_MULTIPLIERS[level]
    if distance <= 0.0:
        return [_Group(position=p, stops=(s,)) for s, p in items]

    groups = _initial_groups(items, distance)
    if level >= SUPER_CLUSTER_MIN_LEVEL:
        groups = _super_groups(groups, distance * SUPER_CLUSTER_FACTOR)
    return groups


def _find_parent(new: Cluster, previous: Sequence[Cluster]) -> Cluster | None:
    ids = new.stop_ids()
    for old in previous:
        if not old.is_dying and ids <= old.stop_ids():
            return old
    return None


def _find_merge_target(old: Cluster, fresh: Sequence[Cluster]) -> Cluster | None:
    old_ids = old.stop_ids()
    best: Cluster | None = None
    best_overlap = 0
    for c in fresh:
        overlap = len(old_ids & c.stop_ids())
        if overlap > best_overlap:
            best_overlap = overlap
            best = c
    if best is not None:
        return best

    best_d = float("inf")
    for c in fresh:
        d = old.animated_position.distance_to(c.position)
        if d < best_d:
            best_d = d
            best = c
    return best


def cluster_markers(
    stops: Sequence[Stop],
    pixel_positions: Mapping[int, PixelPoint],
    zoom: float,
    viewport: Viewport | None = None,
    previous: Sequence[Cluster] = (),
) -> list[Cluster]:
    """Group stop markers for the given zoom and reconcile with last frame.

    `pixel_positions` maps stop id to its on-screen position. Clusters from
    `previous` whose identity reappears are updated in place and keep their
    animation state; new identities start ENTERING; vanished ones turn DYING
    and drift towards the cluster that absorbed them. Call `advance` once per
    frame on the returned list.
    """

    fresh = [
        Cluster.create(g.position, g.stops)
        for g in group_stops(stops, pixel_positions, zoom, viewport)
    ]
    previous_by_id: dict[str, Cluster] = {}
    for c in previous:
        # a live cluster wins over a dying one with the same id
        if c.cluster_id not in previous_by_id or not c.is_dying:
            previous_by_id[c.cluster_id] = c
    fresh_ids = {c.cluster_id for c in fresh}

    out: list[Cluster] = []
    for new in fresh:
        existing = previous_by_id.get(new.cluster_id)
        if existing is not None:
            if existing.is_dying:
                existing.state = ClusterState.ENTERING
            existing.stops = new.stops
            existing.position = new.position
            existing.target_position = new.position
            existing.target_scale = 1.0
            existing.target_alpha = 1.0
            out.append(existing)
            continue

        parent = _find_parent(new, previous)
        if parent is not None:
            new.animated_position = parent.animated_position
            new.scale = parent.scale
            new.alpha = SPLIT_ALPHA
        else:
            new.scale = ENTER_SCALE
            new.alpha = ENTER_ALPHA
        new.state = ClusterState.ENTERING
        out.append(new)

    for old in previous:
        if old.cluster_id in fresh_ids:
            continue
        if not old.is_dying:
            target = _find_merge_target(old, fresh)
            if target is not None:
                old.target_position = target.position
            old.state = ClusterState.DYING
            old.target_scale = DYING_SCALE
            old.target_alpha = 0.0
        out.append(old)

    return out


def ease_factor(delta: float, rate: float = DEFAULT_EASE_RATE) -> float:
    return 1.0 - 0.001 ** (max(0.0, delta) * rate)


def should_remove(cluster: Cluster) -> bool:
    return (
        cluster.is_dying
        and cluster.alpha <= REMOVE_ALPHA
        and cluster.animated_position.distance_to(cluster.target_position)
        <= POSITION_EPSILON_PX
    )


def advance(
    clusters: Sequence[Cluster], delta: float, *, rate: float = DEFAULT_EASE_RATE
) -> list[Cluster]:
    """Animate clusters by `delta` seconds and drop finished dying ones."""

    k = ease_factor(delta, rate)
    out: list[Cluster] = []
    for c in clusters:
        ax, ay = c.animated_position.x, c.animated_position.y
        tx, ty = c.target_position.x, c.target_position.y
        if math.hypot(tx - ax, ty - ay) <= POSITION_EPSILON_PX and not c.is_dying:
            c.animated_position = c.target_position
        else:
            c.animated_position = PixelPoint(ax + (tx - ax) * k, ay + (ty - ay) * k)

        c.scale += (c.target_scale - c.scale) * k
        c.alpha += (c.target_alpha - c.alpha) * k

        if c.state is ClusterState.ENTERING and c.alpha >= STEADY_ALPHA:
            c.state = ClusterState.STEADY

        if should_remove(c):
            continue
        out.append(c)
    return out
