from typing import Any, Callable, Dict, List, Optional

import networkx as nx

from ..logger import logger


def select_edge(graph, u, v, open_route: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Pick the edge data used between two consecutive path nodes.

    Parallel edges are allowed (two routes serving the same stop pair, or a
    ride next to a transfer); the cheapest one is the one the solver relaxed.
    On equal weight the currently open route wins so rides stay merged.
    """
    edges = graph.get_edge_data(u, v)
    if not edges:
        return None
    if not graph.is_multigraph():
        return edges
    best = None
    for key in sorted(edges, key=str):
        data = edges[key]
        if best is None or data['weight'] < best['weight']:
            best = data
        elif data['weight'] == best['weight'] and open_route is not None \
                and data.get('route_id') == open_route and best.get('route_id') != open_route:
            best = data
    return best


class ShortestPathSolver:
    """
    Dijkstra over a built transit graph.
    Allows injection of a custom cost function for experiments.
    """

    def __init__(self, graph, cost_function: Optional[Callable] = None):
        """
        Args:
            graph: NetworkX (Multi)DiGraph with a 'weight' attribute on every edge
            cost_function: function(u, v, data) -> float; defaults to the 'weight' attribute
        """
        self.graph = graph
        self.cost_function = cost_function

    def _weight(self):
        if self.cost_function is None:
            return 'weight'
        if not self.graph.is_multigraph():
            return self.cost_function
        # networkx hands multigraph weight callables the {key: data} mapping of parallel edges;
        # None hides an edge
        def multi_weight(u, v, edges):
            costs = [c for c in (self.cost_function(u, v, data) for data in edges.values()) if c is not None]
            return min(costs) if costs else None
        return multi_weight

    def find_path(self, source: str, target: str) -> List[str]:
        """Weight-minimal list of stop ids from source to target, or [] when none exists.
        A stop reaches itself with the one-node path [source]."""
        try:
            return nx.dijkstra_path(self.graph, source, target, weight=self._weight())
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            logger.debug(f"No path between {source} and {target}")
            return []
