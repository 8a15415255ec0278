"""
Conversion from engine dataclasses to GraphQL types.
"""

from __future__ import annotations

from logistic_loop import models
from logistic_loop.api import types
from logistic_loop.loop_presenter import CommandResult, ContainerRow


def container_to_type(container: models.Container) -> types.Container:
    return types.Container(
        transport_unit_number=container.transport_unit_number,
        content=container.content,
        destination_type=container.destination_type,
    )


def view_node_to_type(node: models.ViewNode) -> types.ViewNode:
    x, y = node.coordinates
    return types.ViewNode(
        node_id=node.node_id,
        node_type=node.node_type,
        coordinates=types.Coordinates(x=x, y=y),
        following_node_ids=list(node.following_node_ids),
        container=container_to_type(node.container) if node.container is not None else None,
    )


def container_row_to_type(row: ContainerRow) -> types.ContainerRow:
    return types.ContainerRow(
        node_id=row.node_id,
        node_type=row.node_type,
        container=container_to_type(row.container),
    )


def command_result_to_type(result: CommandResult) -> types.CommandResult:
    return types.CommandResult(
        success=result.success,
        message=result.message,
        changed_nodes=[view_node_to_type(n) for n in result.changed_nodes],
    )
