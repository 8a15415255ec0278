"""
Commands the presentation layer can send to the loop.

Command is a closed union; the presenter dispatches it with a match statement.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class StepCommand:
    """Step the loop one tick forward"""


@dataclass(frozen=True)
class CommissionCommand:
    """Move the container on a commissioning node back into the loop"""
    node_id: int


@dataclass(frozen=True)
class RetrieveCommand:
    """Retrieve a new container from the warehouse onto a retrieval node"""
    node_id: int
    content: str
    transport_unit_number: int | None = None  # Advisory only, the model assigns its own


Command = StepCommand | CommissionCommand | RetrieveCommand
