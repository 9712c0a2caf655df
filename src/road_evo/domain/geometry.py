import math

import numpy as np

from road_evo.domain.entities.geography import Point


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def point_segment_distance(p: Point, a: Point, b: Point) -> float:
    """Shortest distance from p to the finite segment a-b."""
    cx, cy = b.x - a.x, b.y - a.y
    len_sq = cx * cx + cy * cy
    t = -1.0 if len_sq == 0 else ((p.x - a.x) * cx + (p.y - a.y) * cy) / len_sq
    if t < 0:
        qx, qy = a.x, a.y
    elif t > 1:
        qx, qy = b.x, b.y
    else:
        qx, qy = a.x + t * cx, a.y + t * cy
    return math.hypot(p.x - qx, p.y - qy)


def point_segment_distances(p: Point, starts: np.ndarray, ends: np.ndarray) -> np.ndarray:
    """Vectorised point_segment_distance; starts/ends are (n, 2) arrays."""
    d = ends - starts
    len_sq = np.einsum("ij,ij->i", d, d)
    rel = np.array([p.x, p.y], dtype=float) - starts
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(len_sq > 0, np.einsum("ij,ij->i", rel, d) / len_sq, 0.0)
    t = np.clip(t, 0.0, 1.0)
    closest = starts + t[:, None] * d
    return np.hypot(p.x - closest[:, 0], p.y - closest[:, 1])


def segment_intersection(a1: Point, a2: Point, b1: Point, b2: Point) -> Point | None:
    """
    Interior crossing point of segments a1-a2 and b1-b2, or None.

    Parallel and coincident segments never intersect. A crossing at parameter
    0 or 1 on either segment (a shared or touching endpoint) is not an
    intersection either.
    """
    ua_t = (b2.x - b1.x) * (a1.y - b1.y) - (b2.y - b1.y) * (a1.x - b1.x)
    ub_t = (a2.x - a1.x) * (a1.y - b1.y) - (a2.y - a1.y) * (a1.x - b1.x)
    u_b = (b2.y - b1.y) * (a2.x - a1.x) - (b2.x - b1.x) * (a2.y - a1.y)
    if u_b == 0:
        return None
    ua = ua_t / u_b
    ub = ub_t / u_b
    if not (0 < ua < 1 and 0 < ub < 1):
        return None
    return Point(a1.x + ua * (a2.x - a1.x), a1.y + ua * (a2.y - a1.y))


def _round_half_up(v: float) -> int:
    return math.floor(v + 0.5)


def round_point(p: Point) -> Point:
    return Point(_round_half_up(p.x), _round_half_up(p.y))


def point_on_line(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + t * (b.x - a.x), a.y + t * (b.y - a.y))


def is_finite_point(p: Point) -> bool:
    return math.isfinite(p.x) and math.isfinite(p.y)
