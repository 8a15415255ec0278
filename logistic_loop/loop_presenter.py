from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from logistic_loop.commands import Command, CommissionCommand, RetrieveCommand, StepCommand
from logistic_loop.enums import NodeType
from logistic_loop.loop_model import LogisticLoopModel
from logistic_loop.models import Container, ViewNode


@dataclass
class CommandResult:
    message: str
    changed_nodes: list[ViewNode] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.message == ""


@dataclass(frozen=True)
class ContainerRow:
    """Row of the container table: a container and the node it stands on"""
    node_id: int
    node_type: NodeType
    container: Container


class LoopPresenter():
    """
    Sits between the model and the view.

    Takes commands, calls the model accordingly and hands out only the nodes
    that changed since the last snapshot.
    """
    def __init__(self, model: LogisticLoopModel | None = None):
        self.model = model if model is not None else LogisticLoopModel()
        self.current_nodes: list[ViewNode] = self.model.get_view_nodes()

    def receive_input(self, command: Command) -> CommandResult:
        """
        Run a command against the model and diff the resulting snapshot.

        Commands aimed at a node of the wrong type raise ValueError; that is
        a bug in the caller, not a condition to recover from.
        """
        match command:
            case StepCommand():
                message = self.model.step()
            case CommissionCommand(node_id=node_id):
                message = self.model.commission_container(node_id)
            case RetrieveCommand(node_id=node_id, content=content, transport_unit_number=tun):
                message = self.model.retrieve_container(node_id, content, tun)
            case _:
                raise TypeError(f"Unknown command {command!r}")

        if message:
            logger.warning("{} rejected: {}", type(command).__name__, message)
        else:
            logger.info("{} accepted", type(command).__name__)

        return CommandResult(message=message, changed_nodes=self.filter_unchanged_nodes(self.model.get_view_nodes()))

    def filter_unchanged_nodes(self, new_nodes: list[ViewNode]) -> list[ViewNode]:
        """Return the nodes that differ from the cached snapshot and cache the new one."""
        changed = [node for node in new_nodes if node not in self.current_nodes]
        self.current_nodes = new_nodes
        return changed

    def get_view_nodes(self) -> list[ViewNode]:
        return list(self.current_nodes)

    def get_view_node(self, node_id: int) -> ViewNode | None:
        for node in self.current_nodes:
            if node.node_id == node_id:
                return node
        return None

    def get_container_rows(self) -> list[ContainerRow]:
        """All containers currently on the loop, ordered by transport unit number."""
        rows = [
            ContainerRow(node_id=node.node_id, node_type=node.node_type, container=node.container)
            for node in self.current_nodes if node.container is not None
        ]
        return sorted(rows, key=lambda row: row.container.transport_unit_number)
