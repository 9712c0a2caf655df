# road_evo/evolution/mutations.py
"""
Mutation catalog.

Every operator takes the current network plus a MutationContext and returns
a candidate network. Operators that need a segment or vertex return the
input unchanged when the network has none, so the whole catalog can run from
generation 0.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from road_evo.app.protocols import MutationOperator, RandomSource
from road_evo.domain.entities.geography import Point, Quality, RoadSegment
from road_evo.domain.network import RoadNetwork

DEFAULT_RADIUS = 3

_mutation_registry: dict[str, MutationOperator] = {}


@dataclass(frozen=True)
class MutationContext:
    rng: RandomSource
    cities: Sequence[Point] = ()
    radius: int = DEFAULT_RADIUS


def register_mutation(name: str):
    def deco(fn: MutationOperator):
        _mutation_registry[name] = fn
        return fn

    return deco


def mutation_names() -> list[str]:
    return list(_mutation_registry)


def get_mutation(name: str) -> MutationOperator:
    try:
        return _mutation_registry[name]
    except KeyError:
        raise ValueError(f"Unknown mutation {name!r}; known: {mutation_names()}")


# ------------------- random helpers ---------------------------


def pick(rng: RandomSource, items):
    return items[int(rng.integers(len(items)))]


def random_quality(rng: RandomSource) -> Quality:
    return Quality(int(rng.integers(len(Quality))))


def random_point_around(p: Point, radius: int, rng: RandomSource) -> Point:
    """Integer offset in [-radius, radius] on both axes; not clipped to the map."""
    span = 2 * radius + 1
    return Point(p.x - radius + int(rng.integers(span)), p.y - radius + int(rng.integers(span)))


def _with_random_segment(
    network: RoadNetwork, ctx: MutationContext, fn: Callable[[RoadSegment], RoadNetwork]
) -> RoadNetwork:
    segments = network.segments
    if not segments:
        return network
    return fn(pick(ctx.rng, segments))


def _with_random_vertex(
    network: RoadNetwork, ctx: MutationContext, fn: Callable[[Point], RoadNetwork]
) -> RoadNetwork:
    vertices = network.vertices()
    if not vertices:
        return network
    return fn(pick(ctx.rng, vertices))


def _extend(network: RoadNetwork, p: Point, quality: Quality, ctx: MutationContext):
    return network.add_segment(RoadSegment(p, random_point_around(p, ctx.radius, ctx.rng), quality))


def _nudge(network: RoadNetwork, p: Point, ctx: MutationContext) -> RoadNetwork:
    return network.move_vertex(p, random_point_around(p, ctx.radius, ctx.rng))


# ------------------- the catalog (order is the pick order) ----------------


@register_mutation("create_segment")
def create_segment(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    anchors = [*ctx.cities, *network.vertices()]
    if not anchors:
        return network
    p = pick(ctx.rng, anchors)
    return _extend(network, p, random_quality(ctx.rng), ctx)


@register_mutation("nudge_vertex")
def nudge_vertex(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    return _with_random_vertex(network, ctx, lambda p: _nudge(network, p, ctx))


@register_mutation("remove_vertex")
def remove_vertex(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    return _with_random_vertex(network, ctx, network.remove_vertex)


@register_mutation("remove_segment")
def remove_segment(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    return _with_random_segment(network, ctx, network.remove_segment)


@register_mutation("split_segment")
def split_segment(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    return _with_random_segment(
        network, ctx, lambda s: network.split_segment(s, ctx.rng.random()).network
    )


@register_mutation("split_extend")
def split_extend(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    def apply(s: RoadSegment) -> RoadNetwork:
        net, point, halves = network.split_segment(s, ctx.rng.random())
        return _extend(net, point, halves[0].quality, ctx)

    return _with_random_segment(network, ctx, apply)


@register_mutation("split_requalify")
def split_requalify(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    def apply(s: RoadSegment) -> RoadNetwork:
        net, _, halves = network.split_segment(s, ctx.rng.random())
        # any tier, the current one included
        return net.change_quality(pick(ctx.rng, halves), random_quality(ctx.rng))

    return _with_random_segment(network, ctx, apply)


@register_mutation("split_nudge")
def split_nudge(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    def apply(s: RoadSegment) -> RoadNetwork:
        net, _, _ = network.split_segment(s, ctx.rng.random())
        return _nudge(net, pick(ctx.rng, (s.start, s.end)), ctx)

    return _with_random_segment(network, ctx, apply)


@register_mutation("change_quality")
def change_quality(network: RoadNetwork, ctx: MutationContext) -> RoadNetwork:
    return _with_random_segment(
        network, ctx, lambda s: network.change_quality(s, random_quality(ctx.rng))
    )


CATALOG: tuple[str, ...] = tuple(mutation_names())
