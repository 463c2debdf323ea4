"""Index-path addressing and pure updates for scenario trees.

A node is addressed by the sequence of child indices from the root level:
(2,) is the third root scenario, (2, 0) the first consequence expanded
from it. Updates rebuild the path from the root and share every untouched
subtree, so sibling branches come out of an update unchanged.
"""

import re
from collections.abc import Sequence

from decision_futures.models import Scenario

NodePath = tuple[int, ...]

# Client node ids look like "consequence-2-0"; bare "2-0", "2.0" or "2/0" also work
NODE_ID_PREFIX = re.compile(r"^[A-Za-z_]+[-_:]?")
NODE_ID_SEPARATOR = re.compile(r"[-./,_:]")


class InvalidNodePathError(ValueError):
    """Raised when a node id or path does not address a node of the tree."""
    pass


def parse_node_path(node_id: str) -> NodePath:
    """Parse a client node id into an index path.

    >>> parse_node_path("consequence-2-0")
    (2, 0)
    """
    if not node_id or not node_id.strip():
        raise InvalidNodePathError("Node id is empty")

    body = NODE_ID_PREFIX.sub("", node_id.strip())
    parts = [p for p in NODE_ID_SEPARATOR.split(body) if p != ""]
    if not parts or not all(p.isdigit() for p in parts):
        raise InvalidNodePathError(f"Node id {node_id!r} is not a path of indices")
    return tuple(int(p) for p in parts)


def _child_level(node: Scenario) -> list[Scenario]:
    return node.expanded_scenarios or []


def node_at(scenarios: Sequence[Scenario], path: NodePath) -> Scenario:
    """Return the node at ``path``."""
    if not path:
        raise InvalidNodePathError("Path is empty")

    level = list(scenarios)
    node = None
    for depth, index in enumerate(path):
        if index < 0 or index >= len(level):
            raise InvalidNodePathError(
                f"Path {list(path)} has no node at depth {depth} (index {index}, {len(level)} nodes)"
            )
        node = level[index]
        level = _child_level(node)
    return node


def replace_at(scenarios: Sequence[Scenario], path: NodePath, new_node: Scenario) -> list[Scenario]:
    """Return a copy of the tree with the node at ``path`` replaced by ``new_node``."""
    if not path:
        raise InvalidNodePathError("Path is empty")

    index, rest = path[0], path[1:]
    if index < 0 or index >= len(scenarios):
        raise InvalidNodePathError(
            f"Path index {index} out of range for a level of {len(scenarios)} nodes"
        )

    level = list(scenarios)
    if rest:
        current = level[index]
        children = replace_at(_child_level(current), rest, new_node)
        level[index] = current.model_copy(update={"expanded_scenarios": children})
    else:
        level[index] = new_node
    return level


def graft_children(
    scenarios: Sequence[Scenario], path: NodePath, children: list[Scenario]
) -> list[Scenario]:
    """Return a copy of the tree whose node at ``path`` has ``children`` as its expansion."""
    target = node_at(scenarios, path)
    return replace_at(scenarios, path, target.model_copy(update={"expanded_scenarios": children}))


def count_nodes(scenarios: Sequence[Scenario]) -> int:
    """Total number of nodes in the tree."""
    return sum(1 + count_nodes(_child_level(s)) for s in scenarios)
