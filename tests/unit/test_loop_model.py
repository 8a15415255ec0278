"""
Tests for LogisticLoopModel.

Covers the ordered sub-steps of a tick, retrieval admission, commissioning
and the end-to-end trip of a container around the basic loop.
"""
from __future__ import annotations

from dataclasses import replace
from itertools import cycle

import pytest

from logistic_loop.enums import NodeType
from logistic_loop.error_messages import COMMISSION_ERROR, RETRIEVAL_ERROR, STEP_ERROR
from logistic_loop.layout import BASIC_LOOP_LAYOUT, NodeSpec
from logistic_loop.loop_model import LogisticLoopModel
from logistic_loop.models import Container

COMMISSION_NODE = 0
STORAGE_NODE = 13
RETRIEVAL_NODE = 14
WAREHOUSE_NODE = 15
CONVEYOR_NODES = list(range(1, 13))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def model():
    return LogisticLoopModel()


def put(model, node_id, tun, destination=NodeType.COMMISSIONING, content="Apples"):
    model.nodes[node_id].container = Container(transport_unit_number=tun, content=content,
                                               destination_type=destination)


def position_of(model, tun) -> int | None:
    for node in model.nodes:
        if node.container is not None and node.container.transport_unit_number == tun:
            return node.node_id
    return None


def assert_unique_containers(model):
    tuns = [n.container.transport_unit_number for n in model.nodes if n.container is not None]
    assert len(tuns) == len(set(tuns))


def occupancy(model) -> dict[int, int]:
    return {n.node_id: n.container.transport_unit_number for n in model.nodes if n.container is not None}


# ---------------------------------------------------------------------------
# Construction and snapshot
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_ring_starts_after_commissioning(self, model):
        assert model.ring == CONVEYOR_NODES

    def test_initial_state(self, model):
        assert model.tick == 0
        assert model.current_tun == 10000
        assert all(node.is_empty() for node in model.nodes)

    def test_two_commissioning_nodes_rejected(self):
        nodes = list(BASIC_LOOP_LAYOUT.nodes)
        nodes[13] = NodeSpec(13, NodeType.COMMISSIONING, (1, 0))
        with pytest.raises(ValueError):
            LogisticLoopModel(replace(BASIC_LOOP_LAYOUT, nodes=tuple(nodes)))

    def test_broken_ring_rejected(self):
        edges = tuple(e for e in BASIC_LOOP_LAYOUT.edges if e[:2] != (12, 1))
        with pytest.raises(ValueError):
            LogisticLoopModel(replace(BASIC_LOOP_LAYOUT, edges=edges))

    def test_node_ids_must_be_dense(self):
        nodes = BASIC_LOOP_LAYOUT.nodes[1:] + BASIC_LOOP_LAYOUT.nodes[:1]
        with pytest.raises(ValueError):
            LogisticLoopModel(replace(BASIC_LOOP_LAYOUT, nodes=nodes))


class TestGetViewNodes:
    def test_contains_graph_and_warehouse_nodes(self, model):
        view_nodes = model.get_view_nodes()
        assert [n.node_id for n in view_nodes] == list(range(16))
        assert view_nodes[WAREHOUSE_NODE].node_type == NodeType.WAREHOUSE
        assert view_nodes[WAREHOUSE_NODE].following_node_ids == (RETRIEVAL_NODE,)
        assert view_nodes[WAREHOUSE_NODE].container is None

    def test_following_nodes(self, model):
        view_nodes = model.get_view_nodes()
        assert view_nodes[1].following_node_ids == (0, 2)
        assert view_nodes[6].following_node_ids == (7, 13)
        assert view_nodes[RETRIEVAL_NODE].following_node_ids == (8,)
        # presentation-only link into the warehouse
        assert view_nodes[STORAGE_NODE].following_node_ids == (WAREHOUSE_NODE,)

    def test_coordinates(self, model):
        view_nodes = model.get_view_nodes()
        assert view_nodes[COMMISSION_NODE].coordinates == (2, 4)
        assert view_nodes[WAREHOUSE_NODE].coordinates == (2, 0)

    def test_repeated_reads_are_equal(self, model):
        model.retrieve_container(RETRIEVAL_NODE, "Apples")
        model.step()
        assert model.get_view_nodes() == model.get_view_nodes()

    def test_snapshot_not_affected_by_later_commands(self, model):
        put(model, COMMISSION_NODE, 10001)
        snapshot = model.get_view_nodes()

        assert model.commission_container(COMMISSION_NODE) == ""

        assert snapshot[COMMISSION_NODE].container.destination_type == NodeType.COMMISSIONING
        assert snapshot[1].container is None

    def test_empty_node_collection(self, model):
        model.nodes = []
        with pytest.raises(RuntimeError):
            model.get_view_nodes()


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

class TestRetrieveContainer:
    def test_retrieve_onto_empty_node(self, model):
        assert model.retrieve_container(RETRIEVAL_NODE, "Apples") == ""

        node = model.get_view_nodes()[RETRIEVAL_NODE]
        assert node.container.transport_unit_number == 10001
        assert node.container.content == "Apples"
        assert node.container.destination_type == NodeType.COMMISSIONING

    def test_occupied_node_left_unchanged(self, model):
        model.retrieve_container(RETRIEVAL_NODE, "Apples")
        before = occupancy(model)

        assert model.retrieve_container(RETRIEVAL_NODE, "Pears") == RETRIEVAL_ERROR

        assert occupancy(model) == before
        assert model.nodes[RETRIEVAL_NODE].container.content == "Apples"
        assert model.current_tun == 10001

    @pytest.mark.parametrize("node_id", [COMMISSION_NODE, 5, STORAGE_NODE, WAREHOUSE_NODE, -1])
    def test_wrong_node_rejected(self, model, node_id):
        with pytest.raises(ValueError):
            model.retrieve_container(node_id, "Apples")

    def test_transport_unit_numbers_strictly_increase(self, model):
        tuns = []
        for content in ["Apples", "Pears", "Plums", "Figs"]:
            assert model.retrieve_container(RETRIEVAL_NODE, content) == ""
            tuns.append(model.nodes[RETRIEVAL_NODE].container.transport_unit_number)
            model.step()
            assert_unique_containers(model)
        assert tuns == sorted(tuns)
        assert len(set(tuns)) == len(tuns)
        assert tuns[0] == 10001

    def test_explicit_transport_unit_number_is_advisory(self, model):
        assert model.retrieve_container(RETRIEVAL_NODE, "Apples", transport_unit_number=42) == ""
        assert model.nodes[RETRIEVAL_NODE].container.transport_unit_number == 10001

    def test_custom_tun_base(self):
        model = LogisticLoopModel(tun_base=500)
        model.retrieve_container(RETRIEVAL_NODE, "Apples")
        assert model.nodes[RETRIEVAL_NODE].container.transport_unit_number == 501


# ---------------------------------------------------------------------------
# Commissioning
# ---------------------------------------------------------------------------

class TestCommissionContainer:
    def test_empty_node_is_noop(self, model):
        for _ in range(5):
            assert model.commission_container(COMMISSION_NODE) == ""
        assert occupancy(model) == {}

    def test_moves_container_back_into_loop(self, model):
        put(model, COMMISSION_NODE, 10001)

        assert model.commission_container(COMMISSION_NODE) == ""

        assert model.nodes[COMMISSION_NODE].is_empty()
        assert model.nodes[1].container.transport_unit_number == 10001
        assert model.nodes[1].container.destination_type == NodeType.STORAGE

    def test_blocked_following_node(self, model):
        put(model, COMMISSION_NODE, 10001)
        put(model, 1, 10002)

        assert model.commission_container(COMMISSION_NODE) == COMMISSION_ERROR

        assert model.nodes[COMMISSION_NODE].container.transport_unit_number == 10001
        assert model.nodes[COMMISSION_NODE].container.destination_type == NodeType.COMMISSIONING
        assert model.nodes[1].container.transport_unit_number == 10002

    @pytest.mark.parametrize("node_id", [1, STORAGE_NODE, RETRIEVAL_NODE, WAREHOUSE_NODE, 99])
    def test_wrong_node_rejected(self, model, node_id):
        with pytest.raises(ValueError):
            model.commission_container(node_id)


# ---------------------------------------------------------------------------
# Move primitive
# ---------------------------------------------------------------------------

class TestMoveContainer:
    @pytest.mark.parametrize("from_id, to_id", [(14, 8), (1, 2), (1, 0), (6, 13), (0, 1)])
    def test_valid_moves(self, model, from_id, to_id):
        put(model, from_id, 10001)
        model._move_container(model.nodes[from_id], model.nodes[to_id])
        assert model.nodes[from_id].is_empty()
        assert model.nodes[to_id].container.transport_unit_number == 10001

    @pytest.mark.parametrize("from_id, to_id", [(13, 6), (8, 14), (0, 13), (14, 0)])
    def test_invalid_type_pairs(self, model, from_id, to_id):
        put(model, from_id, 10001)
        with pytest.raises(ValueError):
            model._move_container(model.nodes[from_id], model.nodes[to_id])
        assert model.nodes[from_id].container.transport_unit_number == 10001

    def test_occupied_destination(self, model):
        put(model, 1, 10001)
        put(model, 2, 10002)
        with pytest.raises(ValueError):
            model._move_container(model.nodes[1], model.nodes[2])
        assert occupancy(model) == {1: 10001, 2: 10002}

    def test_missing_node(self, model):
        with pytest.raises(ValueError):
            model._move_container(model.nodes[1], None)


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------

class TestIsRetrievalAllowed:
    def fill_loop(self, model, skip=8, destination=NodeType.COMMISSIONING):
        for tun, node_id in enumerate(CONVEYOR_NODES, start=100):
            if node_id != skip:
                put(model, node_id, tun, destination)

    def test_allowed_when_commissioning_empty(self, model):
        self.fill_loop(model)
        assert model._is_retrieval_allowed(model.nodes[8])

    def test_allowed_with_another_empty_conveyor(self, model):
        self.fill_loop(model)
        put(model, COMMISSION_NODE, 1)
        model.nodes[3].container = None
        assert model._is_retrieval_allowed(model.nodes[8])

    def test_allowed_with_container_leaving_to_storage(self, model):
        self.fill_loop(model)
        put(model, COMMISSION_NODE, 1)
        model.nodes[3].container.destination_type = NodeType.STORAGE
        assert model._is_retrieval_allowed(model.nodes[8])

    def test_denied_when_loop_would_lock(self, model):
        self.fill_loop(model)
        put(model, COMMISSION_NODE, 1)
        assert not model._is_retrieval_allowed(model.nodes[8])


# ---------------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------------

class TestStep:
    def test_step_on_empty_loop(self, model):
        assert model.step() == ""
        assert model.tick == 1
        assert occupancy(model) == {}

    def test_storage_always_offloads(self, model):
        put(model, STORAGE_NODE, 10001, NodeType.STORAGE)
        assert model.step() == ""
        assert model.nodes[STORAGE_NODE].is_empty()

    def test_storage_bound_container_leaves_loop(self, model):
        put(model, 6, 10001, NodeType.STORAGE)
        model.step()
        assert occupancy(model) == {STORAGE_NODE: 10001}

    def test_storage_bound_container_waits_for_nothing(self, model):
        # Storage empties in sub-step 1, so an occupied storage node never blocks
        put(model, STORAGE_NODE, 10001, NodeType.STORAGE)
        put(model, 6, 10002, NodeType.STORAGE)
        model.step()
        assert occupancy(model) == {STORAGE_NODE: 10002}

    def test_commissioning_bound_container_passes_storage(self, model):
        put(model, 6, 10001)
        model.step()
        assert occupancy(model) == {7: 10001}

    def test_occupied_commissioning_keeps_container_circulating(self, model):
        put(model, COMMISSION_NODE, 10001)
        put(model, 1, 10002)
        model.step()
        assert occupancy(model) == {COMMISSION_NODE: 10001, 2: 10002}

    def test_queue_advances_together(self, model):
        for node_id, tun in [(3, 1), (4, 2), (5, 3)]:
            put(model, node_id, tun)
        model.step()
        assert occupancy(model) == {4: 1, 5: 2, 6: 3}

    def test_full_ring_rotates(self, model):
        put(model, COMMISSION_NODE, 1)
        for node_id in CONVEYOR_NODES:
            put(model, node_id, 100 + node_id)

        assert model.step() == ""

        expected = {COMMISSION_NODE: 1}
        expected.update({node_id % 12 + 1: 100 + node_id for node_id in CONVEYOR_NODES})
        assert occupancy(model) == expected

    def test_retrieval_waits_for_free_conveyor(self, model):
        put(model, RETRIEVAL_NODE, 10001)
        put(model, 8, 10002)
        put(model, 9, 10003)
        model.step()
        # 8 is vacated by the ring shift and refilled in the second retrieval pass
        assert occupancy(model) == {8: 10001, 9: 10002, 10: 10003}

    def test_retrieval_blocked_by_stalled_predecessor(self, model):
        put(model, RETRIEVAL_NODE, 10001)
        put(model, 7, 10002)
        model.step()
        assert occupancy(model) == {8: 10001, 7: 10002}

    def test_retrieval_into_gap_in_front_of_jam(self, model):
        put(model, COMMISSION_NODE, 1)
        for node_id in range(1, 8):
            put(model, node_id, 100 + node_id)
        put(model, RETRIEVAL_NODE, 10001)

        assert model.step() == ""

        # The retrieved container takes the gap, the jam behind it stays put
        expected = {COMMISSION_NODE: 1, 8: 10001}
        expected.update({node_id: 100 + node_id for node_id in range(1, 8)})
        assert occupancy(model) == expected

        assert model.step() == ""
        assert position_of(model, 10001) == 9
        assert position_of(model, 107) == 8
        assert position_of(model, 101) == 2
        assert model.nodes[1].is_empty()

    def test_empty_node_collection(self, model):
        model.nodes = []
        assert model.step() == STEP_ERROR

    def test_ring_closing_collision_reported(self, model, monkeypatch):
        put(model, COMMISSION_NODE, 1)
        for node_id in CONVEYOR_NODES:
            put(model, node_id, 100 + node_id)
        monkeypatch.setattr(model, "_move_container", lambda from_node, to_node: None)

        assert model.step() == STEP_ERROR
        assert model.tick == 0

    def test_at_most_one_container_per_node(self, model):
        contents = cycle(["Apples", "Pears", "Plums", "Figs", "Kiwis", "Limes"])
        for tick in range(60):
            if model.nodes[RETRIEVAL_NODE].is_empty():
                assert model.retrieve_container(RETRIEVAL_NODE, next(contents)) == ""
            if tick % 3 == 0:
                model.commission_container(COMMISSION_NODE)
            assert model.step() == ""
            assert_unique_containers(model)
            assert model.get_view_nodes()[WAREHOUSE_NODE].container is None


class TestAdmissionDenial:
    def test_retrieval_held_back_until_loop_frees_up(self, model):
        put(model, COMMISSION_NODE, 1)
        for node_id in CONVEYOR_NODES:
            if node_id != 8:
                put(model, node_id, 100 + node_id)
        put(model, RETRIEVAL_NODE, 10001)

        # Loop turns but the retrieval never enters while it would lock the loop
        for _ in range(4):
            assert model.step() == ""
            assert position_of(model, 10001) == RETRIEVAL_NODE
            assert model.nodes[COMMISSION_NODE].container.transport_unit_number == 1
            assert sum(not model.nodes[i].is_empty() for i in CONVEYOR_NODES) == 11
            assert_unique_containers(model)

        for _ in range(12):
            if model.commission_container(COMMISSION_NODE) == "":
                break
            assert model.step() == ""
            assert position_of(model, 10001) == RETRIEVAL_NODE
        else:
            pytest.fail("Commissioning node never got a free following node")

        for _ in range(40):
            assert model.step() == ""
            assert_unique_containers(model)
            if model.nodes[RETRIEVAL_NODE].is_empty():
                break
        else:
            pytest.fail("Retrieved container never entered the loop")
        assert position_of(model, 10001) in CONVEYOR_NODES


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

class TestRoundTrip:
    def test_container_trip_through_loop(self, model):
        assert model.retrieve_container(RETRIEVAL_NODE, "Apples") == ""
        tun = model.get_view_nodes()[RETRIEVAL_NODE].container.transport_unit_number
        assert tun == 10001

        # Retrieval -> Commissioning along the ring
        trajectory = []
        for _ in range(7):
            assert model.step() == ""
            trajectory.append(position_of(model, tun))
        assert trajectory == [8, 9, 10, 11, 12, 1, COMMISSION_NODE]

        # Commissioning stops the container until it is commissioned
        model.step()
        assert position_of(model, tun) == COMMISSION_NODE

        assert model.commission_container(COMMISSION_NODE) == ""
        assert position_of(model, tun) == 1
        assert model.nodes[1].container.destination_type == NodeType.STORAGE

        # Commissioning -> Storage, then out into the warehouse
        trajectory = []
        for _ in range(6):
            assert model.step() == ""
            trajectory.append(position_of(model, tun))
        assert trajectory == [2, 3, 4, 5, 6, STORAGE_NODE]

        assert model.step() == ""
        assert position_of(model, tun) is None
        assert all(n.container is None for n in model.get_view_nodes())
