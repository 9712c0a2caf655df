import networkx as nx

from road_evo.app.protocols import PathFinder
from road_evo.domain.entities.geography import Point
from road_evo.domain.geometry import distance
from road_evo.domain.network import RoadNetwork


class GreedyPathFinder(PathFinder):
    """Nearest-neighbour walk; may stop short of the target at a local minimum."""

    def find_path(self, network: RoadNetwork, a: Point, b: Point) -> list[Point]:
        return network.find_path(a, b)


def to_graph(network: RoadNetwork) -> nx.Graph:
    """Undirected graph of the network, edges weighted by segment length."""
    g = nx.Graph()
    for s in network:
        g.add_edge(s.start, s.end, length=s.length)
    return g


class ShortestPathFinder(PathFinder):
    """
    A* over segment lengths with a straight-line heuristic.

    When b is not reachable the path ends at the reachable vertex closest to b,
    so callers keep treating the last point as the closest approach.
    """

    def find_path(self, network: RoadNetwork, a: Point, b: Point) -> list[Point]:
        if not network.neighbors(a):
            return [a]
        g = to_graph(network)
        if b in g and nx.has_path(g, a, b):
            return nx.astar_path(g, a, b, heuristic=distance, weight="length")
        paths = nx.single_source_dijkstra_path(g, a, weight="length")
        closest = min(paths, key=lambda p: distance(p, b))
        return paths[closest]
