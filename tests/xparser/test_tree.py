"""
Tests for expression tree construction and utilities.
"""

import dataclasses

import pytest

from xparser import (
    DEFAULT_REGISTRY,
    NEGATION,
    NumberValue,
    TreeBuilder,
    VariableValue,
    parse_expression,
    tree_to_string,
)

PLUS = DEFAULT_REGISTRY.get("+")


class TestTreeBuilder:
    """Tests for structural invariants enforced while building."""

    def test_builds_binary_tree(self):
        builder = TreeBuilder()
        left = builder.add_value(NumberValue(1.0))
        right = builder.add_value(VariableValue("A"), position=2)
        root = builder.add_operation(PLUS, (left, right), position=1)
        tree = builder.build(root, "1+A")

        assert len(tree) == 3
        assert tree.depth == 2
        assert tree.root_node.children == (left, right)
        assert tree.node(right).parent == root
        assert tree.node(right).position == 2
        assert tree.node(right).depth == 2

    def test_rejects_wrong_arity(self):
        builder = TreeBuilder()
        only = builder.add_value(NumberValue(1.0))
        with pytest.raises(ValueError):
            builder.add_operation(PLUS, (only,))

    def test_rejects_duplicate_child(self):
        builder = TreeBuilder()
        shared = builder.add_value(NumberValue(1.0))
        with pytest.raises(ValueError):
            builder.add_operation(PLUS, (shared, shared))

    def test_rejects_child_with_two_parents(self):
        builder = TreeBuilder()
        a = builder.add_value(NumberValue(1.0))
        b = builder.add_value(NumberValue(2.0))
        builder.add_operation(PLUS, (a, b))
        c = builder.add_value(NumberValue(3.0))
        with pytest.raises(ValueError):
            builder.add_operation(PLUS, (a, c))

    def test_rejects_unknown_child(self):
        builder = TreeBuilder()
        builder.add_value(NumberValue(1.0))
        with pytest.raises(ValueError):
            builder.add_operation(NEGATION, (5,))

    def test_rejects_unreachable_nodes(self):
        builder = TreeBuilder()
        builder.add_value(NumberValue(1.0))
        root = builder.add_value(NumberValue(2.0))
        with pytest.raises(ValueError):
            builder.build(root)

    def test_rejects_root_with_parent(self):
        builder = TreeBuilder()
        child = builder.add_value(NumberValue(1.0))
        builder.add_operation(NEGATION, (child,))
        with pytest.raises(ValueError):
            builder.build(child)


class TestImmutability:
    """Tests for frozen tree types."""

    def test_nodes_are_frozen(self):
        tree = parse_expression("1+2")
        with pytest.raises(dataclasses.FrozenInstanceError):
            tree.root_node.children = ()

    def test_values_are_frozen(self):
        value = NumberValue(1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            value.value = 2.0

    def test_leaf_nodes_have_no_children(self):
        tree = parse_expression("1+A*ABS(B)")
        for node in tree.walk():
            if node.item.type in ("Number", "Variable"):
                assert node.is_leaf


class TestTreeToString:
    """Tests for the debug representation."""

    def test_renders_indented_tree(self):
        tree = parse_expression("1+-A")
        assert tree_to_string(tree) == "\n".join(
            [
                "Operator: +",
                "  Number: 1.0",
                "  Negate: -",
                "    Variable: A",
            ]
        )

    def test_renders_function(self):
        tree = parse_expression("MAX(1,2)")
        assert tree_to_string(tree).splitlines()[0] == "Function: MAX"
