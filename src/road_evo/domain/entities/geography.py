from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from math import hypot

SegmentKey = tuple["Point", "Point"]


# Core geometry types used by the road network
@dataclass(frozen=True)
class Point:
    x: float  # grid units; integral for stored vertices
    y: float


class Quality(IntEnum):
    """Road grade. Higher tiers travel faster but cost more and make noise."""

    ROAD = 0
    HIGHWAY = 1
    SUPER_HIGHWAY = 2


def segment_key(a: Point, b: Point) -> SegmentKey:
    """Order-independent identity of the segment a-b (sorted by y, then x)."""
    if (a.y, a.x) <= (b.y, b.x):
        return (a, b)
    return (b, a)


@dataclass(frozen=True, eq=False)
class RoadSegment:
    start: Point
    end: Point
    quality: Quality = Quality.ROAD

    @property
    def length(self) -> float:
        return hypot(self.end.x - self.start.x, self.end.y - self.start.y)

    @property
    def key(self) -> SegmentKey:
        return segment_key(self.start, self.end)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def with_quality(self, quality: Quality) -> RoadSegment:
        return replace(self, quality=Quality(quality))

    def other_end(self, p: Point) -> Point:
        return self.end if p == self.start else self.start

    # quality is not part of a segment's identity
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoadSegment):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)
