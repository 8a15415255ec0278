"""
GraphQL type definitions for the Logistic Loop API.

These @strawberry.type classes mirror the dataclasses in models.py.
The dataclasses are used by the engine, these are exposed via GraphQL.
"""
from __future__ import annotations
import strawberry

from logistic_loop import enums

NodeType = strawberry.enum(enums.NodeType)


@strawberry.type
class Coordinates:
    x: int
    y: int

@strawberry.type
class Container:
    """Transport unit on the loop"""
    transport_unit_number: int
    content: str
    destination_type: NodeType

@strawberry.type
class ViewNode:
    """Snapshot of one node"""
    node_id: int
    node_type: NodeType
    coordinates: Coordinates
    following_node_ids: list[int]
    container: Container | None

@strawberry.type
class ContainerRow:
    """Container table entry, ordered by transport unit number"""
    node_id: int
    node_type: NodeType
    container: Container

# Mutation Result Types
@strawberry.type
class CommandResult:
    success: bool
    message: str
    changed_nodes: list[ViewNode]
