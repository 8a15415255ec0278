"""
Loop layout loader.

Reads a layout from a YAML file into a LoopLayout.
"""

import logging
from pathlib import Path

import yaml

from logistic_loop.enums import NodeType
from logistic_loop.layout import LoopLayout, NodeSpec, WarehouseSpec

_NODE_TYPE_LOOKUP: dict[str, NodeType] = {
    'conveyor':      NodeType.CONVEYOR,
    'retrieval':     NodeType.RETRIEVAL,
    'storage':       NodeType.STORAGE,
    'commissioning': NodeType.COMMISSIONING,
}

logger = logging.getLogger(__name__)


def _row_to_node_spec(row: dict) -> NodeSpec:
    node_type = _NODE_TYPE_LOOKUP.get(str(row["type"]).lower())
    if node_type is None:
        raise ValueError(f"Unknown node type {row['type']!r} for node {row['id']}")
    return NodeSpec(node_id=int(row["id"]), node_type=node_type, coordinates=(int(row["x"]), int(row["y"])))


def _row_to_edge(row: list) -> tuple[int, int, int]:
    if len(row) == 2:
        return int(row[0]), int(row[1]), 1
    if len(row) == 3:
        return int(row[0]), int(row[1]), int(row[2])
    raise ValueError(f"Edge {row!r} must be [from, to] or [from, to, weight]")


def _row_to_warehouse_spec(row: dict) -> WarehouseSpec:
    return WarehouseSpec(
        node_id=int(row["id"]),
        coordinates=(int(row["x"]), int(row["y"])),
        following_node_ids=tuple(int(i) for i in row.get("following", [])),
        fed_by=tuple(int(i) for i in row.get("fed_by", [])),
    )


def load_layout(config_path: str | None = None) -> LoopLayout:
    """
    Load a loop layout from YAML file.

    Args:
        config_path: Path to the layout file. If None, uses config/layout.yaml.

    Returns:
        LoopLayout with nodes sorted by ID
    """
    if config_path is None:
        config_dir = Path(__file__).parent
        config_path = config_dir / "layout.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Layout file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    nodes = sorted((_row_to_node_spec(row) for row in config.get('nodes', [])), key=lambda n: n.node_id)
    edges = tuple(_row_to_edge(row) for row in config.get('edges', []))
    warehouses = tuple(_row_to_warehouse_spec(row) for row in config.get('warehouses', []))
    logger.info("Loaded layout %s: %d nodes, %d edges", config_path, len(nodes), len(edges))

    return LoopLayout(nodes=tuple(nodes), edges=edges, warehouses=warehouses)
