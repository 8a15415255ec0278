from typing import Iterable

import networkx as nx


class LoopGraph:
    """
    Directed graph over a fixed node-ID space [0, node_number).

    Edges carry a positive weight that only marks their existence.
    Backed by a networkx DiGraph.
    """

    def __init__(self, node_number: int, edges: Iterable[tuple[int, int, int]] = ()):
        if node_number < 0:
            raise IndexError("Cannot create a graph with a negative number of nodes.")
        self.node_number: int = node_number
        self._graph = nx.DiGraph()
        self._graph.add_nodes_from(range(node_number))

        for edge in edges:
            if len(edge) != 3:
                raise ValueError(f"Edge {edge!r} must be a (from_id, to_id, weight) triple")
            self.add_edge(*edge)

    def _check_node_id(self, node_id: int):
        if node_id < 0 or node_id >= self.node_number:
            raise IndexError(f"Node ID {node_id} is out of bounds [0, {self.node_number})")

    def add_edge(self, from_id: int, to_id: int, weight: int = 1):
        self._check_node_id(from_id)
        self._check_node_id(to_id)
        if weight < 1:
            raise ValueError("Weight of edge cannot be less than 1.")
        self._graph.add_edge(from_id, to_id, weight=weight)

    def get_adjacent_nodes(self, node_id: int) -> list[int]:
        """Node IDs this node has an edge towards, in ascending order."""
        self._check_node_id(node_id)
        return sorted(self._graph.successors(node_id))

    def get_predecessors(self, node_id: int) -> list[int]:
        """Node IDs with an edge towards this node, in ascending order."""
        self._check_node_id(node_id)
        return sorted(self._graph.predecessors(node_id))

    def get_edge_weight(self, from_id: int, to_id: int) -> int:
        self._check_node_id(from_id)
        self._check_node_id(to_id)
        return self._graph.get_edge_data(from_id, to_id, default={}).get("weight", 0)
