from __future__ import annotations

import math

import pytest

from src.domain.algorithms.clustering import (
    advance,
    cluster_markers,
    ease_factor,
    merge_distance,
    should_remove,
    zoom_bucket,
)
from src.domain.models import ClusterState, Geolocation, PixelPoint, Stop


def _stops(n: int) -> list[Stop]:
    return [
        Stop(
            id=i,
            external_id="",
            name=f"Stop {i}",
            source_coord=(0.0, 0.0),
            location=Geolocation(lat=46.55, lng=15.6),
        )
        for i in range(1, n + 1)
    ]


def _positions(*xs: float) -> dict[int, PixelPoint]:
    return {i: PixelPoint(x, 0.0) for i, x in enumerate(xs, start=1)}


@pytest.mark.parametrize(
    ("zoom", "bucket"),
    [(-1.0, 0), (0.0, 0), (0.1, 0), (0.15, 1), (0.2, 1), (0.5, 3), (1.0, 4), (2.0, 5)],
)
def test_zoom_bucket(zoom: float, bucket: int) -> None:
    assert zoom_bucket(zoom) == bucket


def test_merge_distance() -> None:
    assert merge_distance(0.0) == 0.0
    assert merge_distance(0.3) == 240.0
    assert merge_distance(5.0) == 1600.0


def test_fully_zoomed_in_shows_every_stop() -> None:
    clusters = cluster_markers(_stops(3), _positions(0.0, 1.0, 2.0), 0.0)

    assert sorted(c.cluster_id for c in clusters) == ["1", "2", "3"]
    assert not any(c.is_cluster for c in clusters)


def test_nearby_stops_merge_at_running_centroid() -> None:
    # zoom 0.15 -> 120 px
    clusters = cluster_markers(_stops(3), _positions(0.0, 100.0, 500.0), 0.15)
    by_id = {c.cluster_id: c for c in clusters}

    assert set(by_id) == {"1-2", "3"}
    assert by_id["1-2"].position == PixelPoint(50.0, 0.0)
    assert by_id["1-2"].count == 2


def test_merge_distance_is_strict() -> None:
    clusters = cluster_markers(_stops(2), _positions(0.0, 120.0), 0.15)
    assert len(clusters) == 2


def test_super_clusters_weight_by_member_count() -> None:
    # zoom 0.5 -> 400 px, super-cluster pass at 600 px
    clusters = cluster_markers(_stops(3), _positions(0.0, 300.0, 700.0), 0.5)

    (c,) = clusters
    assert c.cluster_id == "1-2-3"
    assert c.position.x == pytest.approx(1000.0 / 3.0)


def test_viewport_and_non_finite_positions_are_filtered() -> None:
    positions = _positions(10.0, 500.0, 20.0)
    positions[3] = PixelPoint(math.nan, math.nan)

    clusters = cluster_markers(_stops(3), positions, 0.0, viewport=(0.0, -1.0, 100.0, 1.0))

    assert [c.cluster_id for c in clusters] == ["1"]


def test_merging_keeps_survivors_and_retires_absorbed_markers() -> None:
    stops = _stops(3)
    previous = cluster_markers(stops, _positions(0.0, 100.0, 500.0), 0.0)
    kept = next(c for c in previous if c.cluster_id == "3")

    clusters = cluster_markers(stops, _positions(0.0, 100.0, 500.0), 0.15, previous=previous)
    by_id = {c.cluster_id: c for c in clusters}

    assert by_id["3"] is kept
    merged = by_id["1-2"]
    assert merged.state is ClusterState.ENTERING
    assert merged.alpha == 0.0
    assert merged.scale == pytest.approx(0.3)

    for old_id in ("1", "2"):
        old = by_id[old_id]
        assert old.state is ClusterState.DYING
        assert old.target_position == merged.position
        assert old.target_alpha == 0.0


def test_split_children_spawn_from_parent() -> None:
    stops = _stops(2)
    previous = cluster_markers(stops, _positions(0.0, 100.0), 0.15)
    (parent,) = previous
    parent.animated_position = PixelPoint(42.0, 7.0)

    clusters = cluster_markers(stops, _positions(0.0, 100.0), 0.0, previous=previous)
    children = [c for c in clusters if c.cluster_id in {"1", "2"}]

    assert len(children) == 2
    for child in children:
        assert child.animated_position == PixelPoint(42.0, 7.0)
        assert child.alpha == pytest.approx(0.8)
        assert child.state is ClusterState.ENTERING
    assert next(c for c in clusters if c.cluster_id == "1-2").is_dying


def test_ease_factor() -> None:
    assert ease_factor(0.0) == 0.0
    assert ease_factor(-1.0) == 0.0
    assert 0.0 < ease_factor(0.016) < 1.0
    assert ease_factor(1.0) == pytest.approx(1.0)


def test_advance_settles_entering_and_removes_dying() -> None:
    stops = _stops(3)
    previous = cluster_markers(stops, _positions(0.0, 100.0, 500.0), 0.0)
    clusters = cluster_markers(stops, _positions(0.0, 100.0, 500.0), 0.15, previous=previous)

    clusters = advance(clusters, 1.0)

    assert sorted(c.cluster_id for c in clusters) == ["1-2", "3"]
    merged = next(c for c in clusters if c.cluster_id == "1-2")
    assert merged.state is ClusterState.STEADY
    assert merged.alpha == pytest.approx(1.0)
    assert merged.scale == pytest.approx(1.0)


def test_small_step_keeps_dying_clusters() -> None:
    stops = _stops(2)
    previous = cluster_markers(stops, _positions(0.0, 100.0), 0.0)
    clusters = cluster_markers(stops, _positions(0.0, 100.0), 0.15, previous=previous)

    clusters = advance(clusters, 0.016)

    dying = [c for c in clusters if c.is_dying]
    assert len(dying) == 2
    assert all(not should_remove(c) for c in dying)


def test_reappearing_cluster_revives_instead_of_popping_in() -> None:
    stops = _stops(2)
    first = cluster_markers(stops, _positions(0.0, 100.0), 0.0)
    for c in first:
        c.alpha = 1.0
    original = {c.cluster_id: c for c in first}

    merged = advance(
        cluster_markers(stops, _positions(0.0, 100.0), 0.15, previous=first), 0.016
    )
    fading = original["1"].alpha
    assert original["1"].is_dying
    assert 0.0 < fading < 1.0

    clusters = cluster_markers(stops, _positions(0.0, 100.0), 0.0, previous=merged)
    by_id = {c.cluster_id: c for c in clusters}

    assert len(clusters) == 3
    for cid in ("1", "2"):
        revived = by_id[cid]
        assert revived is original[cid]
        assert revived.state is ClusterState.ENTERING
        assert revived.alpha == fading
        assert revived.target_alpha == 1.0
        assert revived.target_scale == 1.0
    assert by_id["1-2"].is_dying
