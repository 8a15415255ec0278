"""
Logistic loop model - owns the graph and node state and steps the loop.

One step runs ordered sub-steps so nodes with priority move first and no
node is handled twice in the same tick:

1. Storage -> Warehouse
2. Conveyor -> Storage
3. Conveyor -> Commissioning
4. Retrieval -> Conveyor
5. Conveyor -> Conveyor (ring shift)
6. Retrieval -> Conveyor (again, for nodes freed by the ring shift)
"""

from loguru import logger

from logistic_loop.enums import NodeType
from logistic_loop.error_messages import COMMISSION_ERROR, RETRIEVAL_ERROR, STEP_ERROR, LoopStateError
from logistic_loop.graph import LoopGraph
from logistic_loop.layout import DEFAULT_LAYOUT, LoopLayout
from logistic_loop.models import Container, GraphNode, ViewNode

TUN_BASE = 10000

# (from_type, to_type) pairs a container may be moved along
VALID_MOVES: frozenset[tuple[NodeType, NodeType]] = frozenset({
    (NodeType.RETRIEVAL, NodeType.CONVEYOR),
    (NodeType.CONVEYOR, NodeType.CONVEYOR),
    (NodeType.CONVEYOR, NodeType.COMMISSIONING),
    (NodeType.CONVEYOR, NodeType.STORAGE),
    (NodeType.COMMISSIONING, NodeType.CONVEYOR),
})


class LogisticLoopModel:
    def __init__(self, layout: LoopLayout = DEFAULT_LAYOUT, tun_base: int = TUN_BASE):
        self.layout: LoopLayout = layout
        self.graph: LoopGraph = LoopGraph(layout.node_number, layout.edges)
        self.nodes: list[GraphNode] = self._construct_graph_nodes(layout)
        self.warehouse_nodes: list[ViewNode] = self._construct_warehouse_nodes(layout)

        # Last assigned transport unit number, increased before every assignment
        self.current_tun: int = tun_base
        self.tick: int = 0

        # Conveyor ring, starting at the conveyor the commissioning node feeds
        self.ring: list[int] = self._trace_ring()
        logger.debug("Loop constructed with {} nodes, ring {}", len(self.nodes), self.ring)

    # ########################################
    # Snapshot

    def get_view_nodes(self) -> list[ViewNode]:
        """
        Transform the node state into value-type ViewNodes for the view.

        Contains every graph node followed by the warehouse nodes.
        """
        if not self.nodes:
            raise RuntimeError("Graph is empty!")

        view_nodes = [
            ViewNode.from_graph_node(node, self._get_following_node_ids(node.node_id))
            for node in self.nodes
        ]
        view_nodes.extend(self.warehouse_nodes)
        return view_nodes

    # ########################################
    # Commands

    def step(self) -> str:
        """Advance the loop by one tick. Returns an error message or an empty string."""
        if not self.nodes:
            logger.error("Cannot step tick {}: node collection is empty", self.tick)
            return STEP_ERROR

        # Nodes whose container has not been moved (or checked) this tick
        unhandled: set[int] = {node.node_id for node in self.nodes}

        self._step_storage_to_warehouse(unhandled)
        self._step_conveyor_to_destination(unhandled, NodeType.STORAGE)
        self._step_conveyor_to_destination(unhandled, NodeType.COMMISSIONING)
        self._step_retrieval_to_conveyor(unhandled)
        try:
            self._step_conveyor_to_conveyor(unhandled)
        except LoopStateError as e:
            logger.error("Step {} failed: {}", self.tick, e)
            return STEP_ERROR
        self._step_retrieval_to_conveyor(unhandled)

        self.tick += 1
        logger.debug("Completed tick {}", self.tick)
        return ""

    def commission_container(self, node_id: int) -> str:
        """
        Commission the container on a commissioning node and move it back into the loop.

        The container gets the destination Storage. Calling this on an empty
        commissioning node does nothing.
        """
        commission_node = self._get_graph_node(node_id)
        if commission_node is None or commission_node.node_type != NodeType.COMMISSIONING:
            raise ValueError("The given node does not match a commission node.")

        if commission_node.is_empty():
            return ""

        following_node = self._get_empty_adjacent_node(commission_node)
        if following_node is None:
            logger.warning("Commissioning node {} blocked: no empty following node", node_id)
            return COMMISSION_ERROR

        self._move_container(commission_node, following_node)
        following_node.container.destination_type = NodeType.STORAGE
        logger.info("Commissioned container {} onto node {}",
                    following_node.container.transport_unit_number, following_node.node_id)
        return ""

    def retrieve_container(self, node_id: int, content: str, transport_unit_number: int | None = None) -> str:
        """
        Retrieve a new container from the warehouse onto an empty retrieval node.

        transport_unit_number is advisory only; the engine always assigns the
        next number from its own counter.
        """
        node = self._get_graph_node(node_id)
        if node is None or node.node_type != NodeType.RETRIEVAL:
            raise ValueError("The given node does not match a retrieval node.")

        if not node.is_empty():
            logger.warning("Retrieval node {} is occupied by container {}",
                           node_id, node.container.transport_unit_number)
            return RETRIEVAL_ERROR

        self.current_tun += 1
        if transport_unit_number and transport_unit_number != self.current_tun:
            logger.debug("Requested transport unit number {} ignored, assigned {}",
                         transport_unit_number, self.current_tun)

        node.place(Container(
            transport_unit_number=self.current_tun,
            content=content,
            destination_type=NodeType.COMMISSIONING,
        ))
        logger.info("Retrieved container {} ({}) onto node {}", self.current_tun, content, node_id)
        return ""

    # ########################################
    # Step methods

    def _store_container(self, node: GraphNode):
        if node.node_type != NodeType.STORAGE:
            raise ValueError("The given node does not match a storage node.")
        # The warehouse is not modeled: the container is simply discarded
        container = node.take()
        if container is not None:
            logger.debug("Stored container {} into warehouse", container.transport_unit_number)

    def _move_container(self, from_node: GraphNode | None, to_node: GraphNode | None):
        if from_node is None or to_node is None:
            raise ValueError("The given nodes are null.")
        if not to_node.is_empty():
            raise ValueError("The node to move the container to is already occupied!")
        if (from_node.node_type, to_node.node_type) not in VALID_MOVES:
            raise ValueError(f"The move from {from_node.node_type.name} to {to_node.node_type.name} is invalid.")

        to_node.place(from_node.take())

    def _step_storage_to_warehouse(self, unhandled: set[int]):
        for node_id in sorted(unhandled):
            node = self.nodes[node_id]
            if node.node_type == NodeType.STORAGE:
                self._store_container(node)
                unhandled.discard(node_id)

    def _step_conveyor_to_destination(self, unhandled: set[int], destination_type: NodeType):
        """Move containers off the loop onto an adjacent empty node of their destination type."""
        for node_id in sorted(unhandled):
            conveyor_node = self.nodes[node_id]
            if conveyor_node.node_type != NodeType.CONVEYOR or conveyor_node.is_empty():
                continue
            if conveyor_node.container.destination_type != destination_type:
                continue

            destination_node = self._get_adjacent_node_of_type(conveyor_node, destination_type)
            if destination_node is not None and destination_node.is_empty():
                self._move_container(conveyor_node, destination_node)
                unhandled.discard(node_id)

    def _step_retrieval_to_conveyor(self, unhandled: set[int]):
        for node_id in sorted(unhandled):
            retrieval_node = self.nodes[node_id]
            if retrieval_node.node_type != NodeType.RETRIEVAL or retrieval_node.is_empty():
                continue

            following_node = self._get_adjacent_node_of_type(retrieval_node, NodeType.CONVEYOR)
            if following_node is None or not following_node.is_empty():
                continue
            if not self._is_retrieval_allowed(following_node):
                logger.debug("Retrieval from node {} held back, loop would lock up", node_id)
                continue

            self._move_container(retrieval_node, following_node)
            unhandled.discard(retrieval_node.node_id)
            unhandled.discard(following_node.node_id)

    def _step_conveyor_to_conveyor(self, unhandled: set[int]):
        """
        Shift every unhandled container on the ring one node forward.

        The ring is walked backwards from an anchor node, so a target is
        vacated before its predecessor moves in. The anchor is a node whose
        container cannot move this tick (empty or already handled). Without
        one the whole ring rotates: the first node's container is lifted,
        everything else shifts, and the lifted container closes the loop.
        """
        ring = self.ring
        size = len(ring)
        if size == 0:
            return

        def can_move(node_id: int) -> bool:
            return node_id in unhandled and not self.nodes[node_id].is_empty()

        anchor = next((i for i, node_id in enumerate(ring) if not can_move(node_id)), None)
        lifted: Container | None = None
        if anchor is None:
            anchor = 0
            lifted = self.nodes[ring[0]].take()
            unhandled.discard(ring[0])

        for offset in range(1, size):
            target_node = self.nodes[ring[(anchor - offset + 1) % size]]
            origin_id = ring[(anchor - offset) % size]
            if origin_id not in unhandled:
                continue
            origin_node = self.nodes[origin_id]
            if not origin_node.is_empty() and target_node.is_empty():
                self._move_container(origin_node, target_node)
            unhandled.discard(origin_id)

        if lifted is not None:
            last_node = self.nodes[ring[1 % size]]
            if not last_node.is_empty():
                raise LoopStateError(
                    f"Cannot close the loop: node {last_node.node_id} still holds container "
                    f"{last_node.container.transport_unit_number}"
                )
            last_node.place(lifted)

    def _is_retrieval_allowed(self, node_to_be_blocked: GraphNode) -> bool:
        """
        Check whether filling node_to_be_blocked could lock the loop for good.

        That happens when the commissioning node is occupied and every other
        conveyor holds a container that wants to reach it: nothing could leave
        the loop and nothing could move inside it.
        """
        for node in self.nodes:
            if node.node_id == node_to_be_blocked.node_id:
                continue
            if node.node_type == NodeType.COMMISSIONING and node.is_empty():
                return True
            if node.node_type == NodeType.CONVEYOR:
                if node.is_empty():
                    return True
                # Leaves the loop some other way
                if node.container.destination_type != NodeType.COMMISSIONING:
                    return True
        return False

    # ########################################
    # Graph methods

    def _get_graph_node(self, node_id: int) -> GraphNode | None:
        if 0 <= node_id < len(self.nodes):
            return self.nodes[node_id]
        return None

    def _get_adjacent_node_of_type(self, node: GraphNode, node_type: NodeType) -> GraphNode | None:
        """First following node of the given type, or None."""
        for node_id in self.graph.get_adjacent_nodes(node.node_id):
            if self.nodes[node_id].node_type == node_type:
                return self.nodes[node_id]
        return None

    def _get_empty_adjacent_node(self, node: GraphNode) -> GraphNode | None:
        for node_id in self.graph.get_adjacent_nodes(node.node_id):
            if self.nodes[node_id].is_empty():
                return self.nodes[node_id]
        return None

    def _get_following_node_ids(self, node_id: int) -> tuple[int, ...]:
        following = self.graph.get_adjacent_nodes(node_id)
        # Storage -> warehouse links exist for the view only
        following.extend(spec.node_id for spec in self.layout.warehouses if node_id in spec.fed_by)
        return tuple(following)

    # ########################################
    # Construction

    def _construct_graph_nodes(self, layout: LoopLayout) -> list[GraphNode]:
        nodes = [GraphNode(node_id=spec.node_id, node_type=spec.node_type, coordinates=spec.coordinates)
                 for spec in layout.nodes]
        for index, node in enumerate(nodes):
            if node.node_id != index:
                raise ValueError(f"Layout node IDs must be 0..{len(nodes) - 1} in order, got {node.node_id} at {index}")
            if node.node_type == NodeType.WAREHOUSE:
                raise ValueError(f"Warehouse node {node.node_id} cannot be part of the simulated graph")
        return nodes

    def _construct_warehouse_nodes(self, layout: LoopLayout) -> list[ViewNode]:
        return [
            ViewNode(
                node_type=NodeType.WAREHOUSE,
                node_id=spec.node_id,
                coordinates=spec.coordinates,
                following_node_ids=tuple(spec.following_node_ids),
            )
            for spec in layout.warehouses
        ]

    def _trace_ring(self) -> list[int]:
        """
        Follow the conveyors forward from the one the commissioning node feeds.

        Every conveyor must have exactly one conveyor successor and all of
        them must form a single cycle.
        """
        commission_nodes = [n for n in self.nodes if n.node_type == NodeType.COMMISSIONING]
        if len(commission_nodes) != 1:
            raise ValueError(f"Layout needs exactly one commissioning node, found {len(commission_nodes)}")

        first_node = self._get_adjacent_node_of_type(commission_nodes[0], NodeType.CONVEYOR)
        if first_node is None:
            raise ValueError("Commissioning node has no following conveyor node")

        conveyor_ids = {n.node_id for n in self.nodes if n.node_type == NodeType.CONVEYOR}
        ring = [first_node.node_id]
        while True:
            successors = [i for i in self.graph.get_adjacent_nodes(ring[-1]) if i in conveyor_ids]
            if len(successors) != 1:
                raise ValueError(f"Conveyor node {ring[-1]} must have exactly one following conveyor, found {successors}")
            if successors[0] == ring[0]:
                break
            if successors[0] in ring:
                raise ValueError(f"Conveyor node {successors[0]} closes a cycle that skips node {ring[0]}")
            ring.append(successors[0])

        if set(ring) != conveyor_ids:
            raise ValueError(f"Conveyor nodes {sorted(conveyor_ids - set(ring))} are not on the loop")
        return ring
