"""
Combined GraphQL schema for the Logistic Loop.

Every mutation runs under the presenter lock: the model is single-threaded
and a step must never start while another command is still running.
"""
from __future__ import annotations
import asyncio
import strawberry

from logistic_loop.api.types import ViewNode, ContainerRow, CommandResult
from logistic_loop.commands import Command, StepCommand, CommissionCommand, RetrieveCommand
from logistic_loop.api.serializers import view_node_to_type, container_row_to_type, command_result_to_type
from logistic_loop.loop_presenter import LoopPresenter


async def _dispatch(info: strawberry.types.Info, command: Command) -> CommandResult:
    presenter: LoopPresenter = info.context["presenter"]
    lock: asyncio.Lock = info.context["lock"]
    async with lock:
        result = presenter.receive_input(command)
    return command_result_to_type(result)


@strawberry.type
class Query:

    @strawberry.field
    def nodes(self, info: strawberry.types.Info) -> list[ViewNode]:
        """Get the latest snapshot of all nodes, warehouse nodes included."""
        presenter: LoopPresenter = info.context["presenter"]
        return [view_node_to_type(n) for n in presenter.get_view_nodes()]

    @strawberry.field
    def node(self, info: strawberry.types.Info, node_id: int) -> ViewNode | None:
        """Get a specific node by ID."""
        presenter: LoopPresenter = info.context["presenter"]
        view_node = presenter.get_view_node(node_id)
        return view_node_to_type(view_node) if view_node is not None else None

    @strawberry.field
    def containers(self, info: strawberry.types.Info) -> list[ContainerRow]:
        """Get all containers on the loop ordered by transport unit number."""
        presenter: LoopPresenter = info.context["presenter"]
        return [container_row_to_type(row) for row in presenter.get_container_rows()]

@strawberry.type
class Mutation:
    """All mutations go through the presenter, one at a time"""

    @strawberry.mutation
    async def step(self, info: strawberry.types.Info) -> CommandResult:
        return await _dispatch(info, StepCommand())

    @strawberry.mutation
    async def commission(self, info: strawberry.types.Info, node_id: int) -> CommandResult:
        """Send the container on a commissioning node back into the loop."""
        return await _dispatch(info, CommissionCommand(node_id=node_id))

    @strawberry.mutation
    async def retrieve(self, info: strawberry.types.Info, node_id: int, content: str,
                       transport_unit_number: int | None = None) -> CommandResult:
        """Retrieve a new container from the warehouse onto a retrieval node."""
        return await _dispatch(info, RetrieveCommand(node_id=node_id, content=content,
                                                     transport_unit_number=transport_unit_number))

# Create the combined GraphQL schema
schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
)
