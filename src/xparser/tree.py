"""
Expression tree types.

The tree is produced by the parser and consumed by the evaluator. Nodes
live in a flat arena and refer to each other by index: every node owns an
ordered tuple of child indices and records its parent index for
diagnostics. Children are always added before their parent, so a child's
index is lower than its parent's.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Literal, Optional, Tuple, Union

from .operations import Operation

# ============================================================
# Leaf payloads
# ============================================================


@dataclass(frozen=True)
class NumberValue:
    """Literal number leaf payload."""

    value: float

    @property
    def type(self) -> Literal["Number"]:
        return "Number"


@dataclass(frozen=True)
class VariableValue:
    """Variable reference, resolved against a mapping at evaluation time."""

    name: str

    @property
    def type(self) -> Literal["Variable"]:
        return "Variable"


Value = Union[NumberValue, VariableValue]

NodeItem = Union[Operation, NumberValue, VariableValue]


# ============================================================
# Nodes and trees
# ============================================================


@dataclass(frozen=True)
class Node:
    """A single tree node."""

    index: int
    item: NodeItem
    children: Tuple[int, ...] = ()
    parent: Optional[int] = None
    position: int = 0
    """Position in source expression (for error reporting)."""

    depth: int = 1

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True)
class ExpressionTree:
    """An immutable n-ary tree of operations and values."""

    nodes: Tuple[Node, ...]
    root: int
    source: Optional[str] = None
    _depth: int = field(default=1, repr=False, compare=False)

    @property
    def root_node(self) -> Node:
        return self.nodes[self.root]

    @property
    def depth(self) -> int:
        """Maximum depth; a single leaf has depth 1."""
        return self._depth

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def children_of(self, node: Node) -> List[Node]:
        return [self.nodes[child] for child in node.children]

    def parent_of(self, node: Node) -> Optional[Node]:
        if node.parent is None:
            return None
        return self.nodes[node.parent]

    def walk(self) -> Iterator[Node]:
        """Yields nodes in pre-order (parent before children, left to right)."""
        stack = [self.root]
        while stack:
            node = self.nodes[stack.pop()]
            yield node
            stack.extend(reversed(node.children))

    def variables(self) -> FrozenSet[str]:
        """Names of all variables the expression references."""
        return frozenset(
            node.item.name for node in self.nodes if isinstance(node.item, VariableValue)
        )


class TreeBuilder:
    """
    Collects nodes bottom-up and produces a frozen ExpressionTree.

    Enforces the structural invariants: value nodes have no children,
    operation nodes have as many children as their arity allows, and no
    node is shared between two parents.
    """

    def __init__(self) -> None:
        self._items: List[NodeItem] = []
        self._children: List[Tuple[int, ...]] = []
        self._parents: List[Optional[int]] = []
        self._positions: List[int] = []

    def __len__(self) -> int:
        return len(self._items)

    def add_value(self, value: Value, position: int = 0) -> int:
        return self._add(value, (), position)

    def add_operation(
        self, operation: Operation, children: Tuple[int, ...], position: int = 0
    ) -> int:
        if not operation.accepts(len(children)):
            raise ValueError(
                f"Operation '{operation.name}' expects {operation.describe_arity()} "
                f"operand(s), got {len(children)}"
            )
        if len(set(children)) != len(children):
            raise ValueError("A node cannot appear twice among its parent's children")
        for child in children:
            if not 0 <= child < len(self._items):
                raise ValueError(f"Unknown child node {child}")
            if self._parents[child] is not None:
                raise ValueError(f"Node {child} already has a parent")

        index = self._add(operation, tuple(children), position)
        for child in children:
            self._parents[child] = index
        return index

    def _add(self, item: NodeItem, children: Tuple[int, ...], position: int) -> int:
        self._items.append(item)
        self._children.append(children)
        self._parents.append(None)
        self._positions.append(position)
        return len(self._items) - 1

    def build(self, root: int, source: Optional[str] = None) -> ExpressionTree:
        """Freezes the collected nodes into a tree rooted at ``root``."""
        if not 0 <= root < len(self._items):
            raise ValueError(f"Unknown root node {root}")
        if self._parents[root] is not None:
            raise ValueError(f"Root node {root} has a parent")

        depths: Dict[int, int] = {root: 1}
        for index in range(root, -1, -1):
            if index not in depths:
                continue
            for child in self._children[index]:
                depths[child] = depths[index] + 1

        if len(depths) != len(self._items):
            raise ValueError("Tree contains nodes unreachable from the root")

        nodes = tuple(
            Node(
                index=index,
                item=self._items[index],
                children=self._children[index],
                parent=self._parents[index],
                position=self._positions[index],
                depth=depths[index],
            )
            for index in range(len(self._items))
        )
        return ExpressionTree(
            nodes=nodes, root=root, source=source, _depth=max(depths.values())
        )


# ============================================================
# Tree utilities
# ============================================================


def tree_to_string(tree: ExpressionTree) -> str:
    """Returns a human-readable representation of a tree for debugging."""
    lines = []
    for node in tree.walk():
        prefix = "  " * (node.depth - 1)
        item = node.item
        if item.type == "Number":
            lines.append(f"{prefix}Number: {item.value}")
        elif item.type == "Variable":
            lines.append(f"{prefix}Variable: {item.name}")
        elif item.is_function:
            lines.append(f"{prefix}Function: {item.name}")
        elif item.is_unary:
            lines.append(f"{prefix}Negate: {item.name}")
        else:
            lines.append(f"{prefix}Operator: {item.name}")
    return "\n".join(lines)
