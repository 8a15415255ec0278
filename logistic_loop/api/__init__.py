"""
GraphQL API layer for the Logistic Loop.

This package contains:
- types.py: GraphQL type definitions
- serializers.py: engine dataclass to GraphQL type conversion
- schema.py: Query and Mutation roots combined into a Strawberry schema
"""

from .schema import schema

__all__ = ["schema"]
