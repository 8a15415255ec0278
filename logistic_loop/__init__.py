"""
Logistic Loop - Discrete-step conveyor loop simulation

A deterministic engine for a small closed-loop material-handling system:
- Containers retrieved from a warehouse onto a retrieval spur
- A conveyor ring that shifts containers one node per tick
- A commissioning station and a storage spur back to the warehouse
- GraphQL gateway for stepping the loop and polling snapshots
"""

__version__ = "0.1.0"
