"""
Shared data models for the logistic loop.

These are plain Python dataclasses used by the engine and the presenter.
The api package mirrors them with @strawberry.type for GraphQL exposure.
"""

from dataclasses import dataclass, field, replace

from logistic_loop.enums import NodeType


@dataclass(eq=False)
class Container:
    """Transport unit moving through the loop, identified by its transport unit number"""
    transport_unit_number: int
    content: str
    destination_type: NodeType = NodeType.COMMISSIONING

    def __eq__(self, other):
        if not isinstance(other, Container):
            return NotImplemented
        return self.transport_unit_number == other.transport_unit_number

    def __hash__(self):
        return hash(self.transport_unit_number)


@dataclass
class GraphNode:
    """
    Node of the simulated graph.

    Everything but the container is fixed after construction. A node holds
    at most one container; None means the node is empty.
    """
    node_id: int
    node_type: NodeType
    coordinates: tuple[int, int]
    container: Container | None = None

    def is_empty(self) -> bool:
        return self.container is None

    def take(self) -> Container | None:
        """Remove and return the container on this node."""
        container, self.container = self.container, None
        return container

    def place(self, container: Container):
        if self.container is not None:
            raise ValueError(f"Node {self.node_id} is already occupied by container {self.container.transport_unit_number}")
        self.container = container


@dataclass(frozen=True, eq=False)
class ViewNode:
    """
    Read-only projection of a node for the presentation layer.

    Two ViewNodes are equal when type and id match and they hold the same
    container (or both none). Coordinates and following nodes never change
    after construction and are left out of the comparison.
    """
    node_type: NodeType
    node_id: int
    coordinates: tuple[int, int]
    following_node_ids: tuple[int, ...] = field(default_factory=tuple)
    container: Container | None = None

    def __eq__(self, other):
        if not isinstance(other, ViewNode):
            return NotImplemented
        return (
            self.node_type == other.node_type
            and self.node_id == other.node_id
            and self.container == other.container
        )

    def __hash__(self):
        return hash((self.node_type, self.node_id, self.container))

    @classmethod
    def from_graph_node(cls, node: GraphNode, following_node_ids: tuple[int, ...]) -> "ViewNode":
        # Copy so a later destination change on the live container never leaks into this snapshot
        container = replace(node.container) if node.container is not None else None
        return cls(
            node_type=node.node_type,
            node_id=node.node_id,
            coordinates=node.coordinates,
            following_node_ids=following_node_ids,
            container=container,
        )
