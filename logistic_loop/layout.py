"""
Fixed layout tables for the logistic loop.

A layout is immutable: node ids, types, raster coordinates, the edge list the
graph is built from, and the warehouse records that only exist for the view.
"""

from dataclasses import dataclass

from logistic_loop.enums import NodeType


@dataclass(frozen=True)
class NodeSpec:
    """A simulated node of the layout"""
    node_id: int
    node_type: NodeType
    coordinates: tuple[int, int]


@dataclass(frozen=True)
class WarehouseSpec:
    """
    Warehouse placeholder shown next to the loop.

    following_node_ids are the nodes the warehouse feeds (retrieval),
    fed_by are the nodes that offload into it (storage).
    """
    node_id: int
    coordinates: tuple[int, int]
    following_node_ids: tuple[int, ...]
    fed_by: tuple[int, ...] = ()


@dataclass(frozen=True)
class LoopLayout:
    nodes: tuple[NodeSpec, ...]
    edges: tuple[tuple[int, int, int], ...]  # (from_id, to_id, weight)
    warehouses: tuple[WarehouseSpec, ...] = ()

    @property
    def node_number(self) -> int:
        return len(self.nodes)


# "Basic" loop: commissioning station at the bottom, twelve conveyors in a ring,
# storage spur leaving at conveyor 6, retrieval spur entering at conveyor 8.
BASIC_LOOP_LAYOUT = LoopLayout(
    nodes=(
        NodeSpec(0,  NodeType.COMMISSIONING, (2, 4)),
        NodeSpec(1,  NodeType.CONVEYOR,      (2, 3)),
        NodeSpec(2,  NodeType.CONVEYOR,      (1, 3)),
        NodeSpec(3,  NodeType.CONVEYOR,      (0, 3)),
        NodeSpec(4,  NodeType.CONVEYOR,      (0, 2)),
        NodeSpec(5,  NodeType.CONVEYOR,      (0, 1)),
        NodeSpec(6,  NodeType.CONVEYOR,      (1, 1)),
        NodeSpec(7,  NodeType.CONVEYOR,      (2, 1)),
        NodeSpec(8,  NodeType.CONVEYOR,      (3, 1)),
        NodeSpec(9,  NodeType.CONVEYOR,      (4, 1)),
        NodeSpec(10, NodeType.CONVEYOR,      (4, 2)),
        NodeSpec(11, NodeType.CONVEYOR,      (4, 3)),
        NodeSpec(12, NodeType.CONVEYOR,      (3, 3)),
        NodeSpec(13, NodeType.STORAGE,       (1, 0)),
        NodeSpec(14, NodeType.RETRIEVAL,     (3, 0)),
    ),
    edges=(
        (1, 0, 1),
        (0, 1, 1),
        (1, 2, 1),
        (2, 3, 1),
        (3, 4, 1),
        (4, 5, 1),
        (5, 6, 1),
        (6, 7, 1),
        (7, 8, 1),
        (8, 9, 1),
        (9, 10, 1),
        (10, 11, 1),
        (11, 12, 1),
        (12, 1, 1),
        (6, 13, 1),
        (14, 8, 1),
    ),
    warehouses=(
        WarehouseSpec(node_id=15, coordinates=(2, 0), following_node_ids=(14,), fed_by=(13,)),
    ),
)

DEFAULT_LAYOUT = BASIC_LOOP_LAYOUT
