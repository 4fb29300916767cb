from __future__ import annotations

import math
from dataclasses import dataclass

from src.domain.models import Geolocation, PixelPoint, TileXY

TILE_SIZE = 512
DEFAULT_GRID_SIZE = 29


@dataclass(frozen=True, slots=True)
class TransverseMercatorParams:
    """Ellipsoid and projection constants of a transverse Mercator datum."""

    semi_major_axis: float
    flattening: float
    central_meridian_deg: float
    scale_factor: float
    false_easting: float
    false_northing: float

    @property
    def n(self) -> float:
        f = self.flattening
        return f / (2.0 - f)

    @property
    def rectifying_radius(self) -> float:
        n = self.n
        return self.semi_major_axis / (1.0 + n) * (1.0 + n**2 / 4.0 + n**4 / 64.0)


# Slovenian D96/TM (EPSG:3794) on GRS80.
D96_TM = TransverseMercatorParams(
    semi_major_axis=6378137.0,
    flattening=1.0 / 298.257222101,
    central_meridian_deg=15.0,
    scale_factor=0.9999,
    false_easting=500000.0,
    false_northing=-5000000.0,
)


def _alpha(n: float) -> tuple[float, float, float]:
    return (
        n / 2.0 - 2.0 * n**2 / 3.0 + 5.0 * n**3 / 16.0,
        13.0 * n**2 / 48.0 - 3.0 * n**3 / 5.0,
        61.0 * n**3 / 240.0,
    )


def _beta(n: float) -> tuple[float, float, float]:
    return (
        n / 2.0 - 2.0 * n**2 / 3.0 + 37.0 * n**3 / 96.0,
        n**2 / 48.0 + n**3 / 15.0,
        17.0 * n**3 / 480.0,
    )


def _delta(n: float) -> tuple[float, float, float]:
    return (
        2.0 * n - 2.0 * n**2 / 3.0 - 2.0 * n**3,
        7.0 * n**2 / 3.0 - 8.0 * n**3 / 5.0,
        56.0 * n**3 / 15.0,
    )


def _wrap_lng(lng: float) -> float:
    if -180.0 <= lng <= 180.0:
        return lng
    return (lng + 180.0) % 360.0 - 180.0


def projected_to_geodetic(
    x: float, y: float, params: TransverseMercatorParams = D96_TM
) -> Geolocation:
    """Inverse transverse Mercator (Krüger series) from easting/northing.

    Non-finite input yields a NaN location rather than an exception.
    """

    if not (math.isfinite(x) and math.isfinite(y)):
        return Geolocation(lat=math.nan, lng=math.nan)

    n = params.n
    k0a = params.scale_factor * params.rectifying_radius

    xi = (y - params.false_northing) / k0a
    eta = (x - params.false_easting) / k0a

    xi_p = xi
    eta_p = eta
    for j, b in enumerate(_beta(n), start=1):
        xi_p -= b * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
        eta_p -= b * math.cos(2 * j * xi) * math.sinh(2 * j * eta)

    chi = math.asin(math.sin(xi_p) / math.cosh(eta_p))
    phi = chi
    for j, d in enumerate(_delta(n), start=1):
        phi += d * math.sin(2 * j * chi)

    lam = math.radians(params.central_meridian_deg) + math.atan2(
        math.sinh(eta_p), math.cos(xi_p)
    )

    return Geolocation(lat=math.degrees(phi), lng=_wrap_lng(math.degrees(lam)))


def geodetic_to_projected(
    lat: float, lng: float, params: TransverseMercatorParams = D96_TM
) -> tuple[float, float]:
    """Forward transverse Mercator (Krüger series) to (easting, northing)."""

    if not (math.isfinite(lat) and math.isfinite(lng)):
        return (math.nan, math.nan)

    n = params.n
    k0a = params.scale_factor * params.rectifying_radius

    phi = math.radians(lat)
    dlam = math.radians(lng - params.central_meridian_deg)

    c = 2.0 * math.sqrt(n) / (1.0 + n)
    sin_phi = math.sin(phi)
    t = math.sinh(math.atanh(sin_phi) - c * math.atanh(c * sin_phi))

    xi_p = math.atan2(t, math.cos(dlam))
    eta_p = math.atanh(math.sin(dlam) / math.sqrt(1.0 + t * t))

    xi = xi_p
    eta = eta_p
    for j, a in enumerate(_alpha(n), start=1):
        xi += a * math.sin(2 * j * xi_p) * math.cosh(2 * j * eta_p)
        eta += a * math.cos(2 * j * xi_p) * math.sinh(2 * j * eta_p)

    easting = params.false_easting + k0a * eta
    northing = params.false_northing + k0a * xi
    return (easting, northing)


def web_mercator_world(lat: float, lng: float, tile_size: int = TILE_SIZE) -> tuple[float, float]:
    """World coordinate at zoom 0, with the pole singularity clamped away."""

    siny = math.sin(lat * math.pi / 180.0)
    siny = min(max(siny, -0.9999), 0.9999)

    return (
        tile_size * (0.5 + lng / 360.0),
        tile_size * (0.5 - math.log((1.0 + siny) / (1.0 - siny)) / (4.0 * math.pi)),
    )


def geodetic_to_tile_pixel(
    lat: float,
    lng: float,
    tile_origin_x: int,
    tile_origin_y: int,
    zoom: int,
    *,
    tile_size: int = TILE_SIZE,
    map_height: float | None = None,
) -> PixelPoint:
    """Pixel position relative to the top-left tile of the loaded tile grid.

    The y axis is flipped so that pixel y grows northwards.
    """

    if not (math.isfinite(lat) and math.isfinite(lng)):
        return PixelPoint(x=math.nan, y=math.nan)

    if map_height is None:
        map_height = float(tile_size * DEFAULT_GRID_SIZE)

    wx, wy = web_mercator_world(lat, lng, tile_size)
    scale = 2.0**zoom

    px = math.floor(wx * scale) - tile_origin_x * tile_size
    py = map_height - (math.floor(wy * scale) - tile_origin_y * tile_size - 1)
    return PixelPoint(x=float(px), y=float(py))


def tile_number(lat: float, lng: float, zoom: int) -> TileXY:
    n_tiles = 1 << zoom
    lat_rad = math.radians(lat)
    xtile = int(math.floor((lng + 180.0) / 360.0 * n_tiles))
    ytile = int(
        math.floor(
            (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi)
            / 2.0
            * n_tiles
        )
    )
    xtile = max(0, min(xtile, n_tiles - 1))
    ytile = max(0, min(ytile, n_tiles - 1))
    return TileXY(zoom=zoom, x=xtile, y=ytile)


def origin_tile(
    center: Geolocation, zoom: int, grid_size: int = DEFAULT_GRID_SIZE
) -> TileXY:
    """Top-left tile of a square grid of tiles centred on `center`."""

    c = tile_number(center.lat, center.lng, zoom)
    half = (grid_size - 1) // 2
    return TileXY(zoom=zoom, x=c.x - half, y=c.y - half)
