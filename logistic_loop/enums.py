"""
Shared enum definitions for the logistic loop.

These are plain Python enums. The api package wraps them with
@strawberry.enum for GraphQL.
"""

from enum import Enum


class NodeType(Enum):
    """Node types in the conveyor loop, by their function"""
    CONVEYOR = 0
    RETRIEVAL = 1
    STORAGE = 2
    COMMISSIONING = 3
    WAREHOUSE = 4  # Presentation only, never part of the simulated graph
