# road_evo/domain/network.py
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from itertools import combinations
from typing import NamedTuple

from road_evo.domain.entities.geography import (
    Point,
    Quality,
    RoadSegment,
    SegmentKey,
    segment_key,
)
from road_evo.domain.geometry import distance, point_on_line, round_point, segment_intersection

# Nesting limit for intersection splitting. Every level works on a strictly
# shorter piece, so hitting this means the geometry went wrong somewhere.
MAX_DECONFLICT_DEPTH = 200

# A removed vertex only has its neighbours rejoined up to this degree.
MAX_RECONNECT_DEGREE = 3


class NetworkIntegrityError(RuntimeError):
    """Adjacency index and segment store disagree."""


class DeconflictionError(RuntimeError):
    """Intersection splitting did not converge."""


class SplitResult(NamedTuple):
    network: RoadNetwork
    point: Point
    halves: tuple[RoadSegment, RoadSegment]


class _NetworkEdit:
    """Private working copy; every public operation copies once, edits, freezes."""

    def __init__(self, net: RoadNetwork):
        self.segments: dict[SegmentKey, RoadSegment] = dict(net.segment_map)
        self.connections: dict[Point, list[Point]] = {
            k: list(v) for k, v in net.connections.items()
        }

    def add(self, seg: RoadSegment, depth: int = 0) -> None:
        if seg.is_empty:
            return
        if depth > MAX_DECONFLICT_DEPTH:
            raise DeconflictionError(
                f"splitting {seg.start}-{seg.end} exceeded depth {MAX_DECONFLICT_DEPTH}"
            )
        conflict, ip = None, None
        for other in self.segments.values():
            ip = segment_intersection(other.start, other.end, seg.start, seg.end)
            if ip is not None:
                conflict = other
                break
        if conflict is None:
            self.add_non_intersecting(seg)
            return

        ip = round_point(ip)
        self.remove(conflict)
        for end in (seg.start, seg.end):
            self.add(RoadSegment(ip, end, seg.quality), depth + 1)
        for end in (conflict.start, conflict.end):
            self.add(RoadSegment(ip, end, conflict.quality), depth + 1)

    def add_non_intersecting(self, seg: RoadSegment) -> None:
        key = seg.key
        known = key in self.segments
        self.segments[key] = seg  # same key replaces (quality change)
        if not known:
            self.connections.setdefault(seg.start, []).append(seg.end)
            self.connections.setdefault(seg.end, []).append(seg.start)

    def remove(self, seg: RoadSegment) -> None:
        if self.segments.pop(seg.key, None) is None:
            return
        self._unlink(seg.start, seg.end)
        self._unlink(seg.end, seg.start)

    def _unlink(self, a: Point, b: Point) -> None:
        lst = self.connections.get(a)
        if lst is None:
            return
        rest = [p for p in lst if p != b]
        if rest:
            self.connections[a] = rest
        else:
            del self.connections[a]

    def freeze(self) -> RoadNetwork:
        return RoadNetwork(
            segment_map=self.segments,
            connections={k: tuple(v) for k, v in self.connections.items()},
        )


@dataclass(frozen=True, eq=False)
class RoadNetwork:
    """
    Immutable set of road segments plus an adjacency index.

    Invariants kept by every operation:
      • one segment per canonical endpoint key, none empty
      • no two segments cross at an interior point
      • connections[p] lists exactly the far ends of the segments touching p
    """

    segment_map: Mapping[SegmentKey, RoadSegment] = field(default_factory=dict)
    connections: Mapping[Point, tuple[Point, ...]] = field(default_factory=dict)

    # ---------------- queries ----------------

    @property
    def segments(self) -> list[RoadSegment]:
        return list(self.segment_map.values())

    def __len__(self) -> int:
        return len(self.segment_map)

    def __iter__(self) -> Iterator[RoadSegment]:
        return iter(self.segment_map.values())

    def __contains__(self, seg: object) -> bool:
        return isinstance(seg, RoadSegment) and seg.key in self.segment_map

    def vertices(self) -> list[Point]:
        seen: dict[Point, None] = {}
        for s in self.segment_map.values():
            seen.setdefault(s.start)
            seen.setdefault(s.end)
        return list(seen)

    def neighbors(self, p: Point) -> tuple[Point, ...]:
        return self.connections.get(p, ())

    def find_segment(self, a: Point, b: Point) -> RoadSegment | None:
        return self.segment_map.get(segment_key(a, b))

    def require_segment(self, a: Point, b: Point) -> RoadSegment:
        s = self.find_segment(a, b)
        if s is None:
            raise NetworkIntegrityError(f"no segment between adjacent points {a} and {b}")
        return s

    def find_path(self, a: Point, b: Point) -> list[Point]:
        """
        Greedy walk from a towards b.

        Moves to whichever neighbour is closest to b in a straight line and
        stops once no neighbour is strictly closer than the current point.
        The first and last points are the closest approach points, not
        necessarily a and b.
        """
        path = [a]
        cur = a
        while cur != b:
            best, best_d = cur, distance(cur, b)
            for n in self.neighbors(cur):
                d = distance(n, b)
                if d < best_d:
                    best, best_d = n, d
            if best == cur:
                break
            path.append(best)
            cur = best
        return path

    # ---------------- transformations ----------------

    def add_segment(self, seg: RoadSegment) -> RoadNetwork:
        if seg.is_empty:
            return self
        edit = _NetworkEdit(self)
        edit.add(seg)
        return edit.freeze()

    def add_non_intersecting(self, seg: RoadSegment) -> RoadNetwork:
        edit = _NetworkEdit(self)
        edit.add_non_intersecting(seg)
        return edit.freeze()

    def remove_segment(self, seg: RoadSegment) -> RoadNetwork:
        if seg not in self:
            return self
        edit = _NetworkEdit(self)
        edit.remove(seg)
        return edit.freeze()

    def change_quality(self, seg: RoadSegment, quality: Quality) -> RoadNetwork:
        edit = _NetworkEdit(self)
        edit.remove(seg)
        edit.add(seg.with_quality(quality))
        return edit.freeze()

    def move_vertex(self, old: Point, new: Point) -> RoadNetwork:
        nbrs = self.neighbors(old)
        if not nbrs:
            return self
        old_segments = [self.require_segment(old, c) for c in nbrs]
        edit = _NetworkEdit(self)
        for s in old_segments:
            edit.remove(s)
        for c, s in zip(nbrs, old_segments):
            edit.add(RoadSegment(new, c, s.quality))
        return edit.freeze()

    def remove_vertex(self, p: Point) -> RoadNetwork:
        nbrs = self.neighbors(p)
        if not nbrs:
            return self
        removed = [self.require_segment(p, c) for c in nbrs]
        edit = _NetworkEdit(self)
        for s in removed:
            edit.remove(s)
        if len(nbrs) <= MAX_RECONNECT_DEGREE:
            lowest = min(s.quality for s in removed)
            for a, b in combinations(nbrs, 2):
                edit.add(RoadSegment(a, b, lowest))
        return edit.freeze()

    def split_segment(self, seg: RoadSegment, t: float) -> SplitResult:
        point = round_point(point_on_line(seg.start, seg.end, t))
        halves = (
            RoadSegment(seg.start, point, seg.quality),
            RoadSegment(seg.end, point, seg.quality),
        )
        edit = _NetworkEdit(self)
        edit.remove(seg)
        for h in halves:
            edit.add(h)
        return SplitResult(edit.freeze(), point, halves)
