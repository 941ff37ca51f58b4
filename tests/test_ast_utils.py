"""
Tests for the ESTree helper functions.
"""

import unittest

from script_closure_detector.ast_utils import (
    get_code_snippet,
    get_member_property_name,
    get_object_property,
    get_static_property_name,
    has_spread_property,
    is_function_like,
    is_type_only_reference,
    iter_child_nodes,
    node_location,
    node_type,
    unwrap_chain,
)
from script_closure_detector.scope import Reference


def ident(name):
    return {"type": "Identifier", "name": name}


def literal(value, **extra):
    node = {"type": "Literal", "value": value}
    node.update(extra)
    return node


def member(obj, prop, computed=False):
    return {"type": "MemberExpression", "computed": computed, "object": obj, "property": prop}


def prop(key, value, computed=False):
    return {"type": "Property", "key": key, "value": value, "computed": computed, "kind": "init"}


class TestPropertyNames(unittest.TestCase):
    """Test cases for static property name extraction."""

    def test_static_property_names(self):
        """Test identifiers, literals and simple templates."""
        template = {
            "type": "TemplateLiteral",
            "expressions": [],
            "quasis": [{"type": "TemplateElement", "value": {"raw": "scripting", "cooked": "scripting"}}],
        }
        self.assertEqual(get_static_property_name(ident("scripting")), "scripting")
        self.assertEqual(get_static_property_name(literal("executeScript")), "executeScript")
        self.assertEqual(get_static_property_name(literal(1.0)), "1")
        self.assertEqual(get_static_property_name(literal(2.5)), "2.5")
        self.assertEqual(get_static_property_name(literal(True)), "true")
        self.assertEqual(get_static_property_name(literal(None)), "null")
        self.assertEqual(get_static_property_name(literal(None, regex={"pattern": "a", "flags": "g"}, raw="/a/g")), "/a/g")
        self.assertEqual(get_static_property_name(template), "scripting")

    def test_dynamic_property_names(self):
        """Test keys whose name is not known statically."""
        template = {
            "type": "TemplateLiteral",
            "expressions": [ident("x")],
            "quasis": [],
        }
        self.assertIsNone(get_static_property_name(template))
        self.assertIsNone(get_static_property_name({"type": "CallExpression"}))
        self.assertIsNone(get_static_property_name(None))

    def test_member_property_name(self):
        """Test member property names for dotted and computed access."""
        self.assertEqual(get_member_property_name(member(ident("chrome"), ident("scripting"))), "scripting")
        self.assertEqual(
            get_member_property_name(member(ident("chrome"), literal("scripting"), computed=True)),
            "scripting",
        )
        self.assertIsNone(get_member_property_name(member(ident("chrome"), ident("key"), computed=True)))
        self.assertIsNone(get_member_property_name(ident("chrome")))


class TestObjectHelpers(unittest.TestCase):
    """Test cases for object literal helpers."""

    def setUp(self):
        """Set up test fixtures."""
        self.obj = {
            "type": "ObjectExpression",
            "properties": [
                prop(ident("func"), ident("computedFirst"), computed=True),
                {"type": "SpreadElement", "argument": ident("rest")},
                prop(literal("func"), ident("first")),
                prop(ident("func"), ident("second")),
            ],
        }

    def test_get_object_property(self):
        """Test the first non-computed match wins."""
        found = get_object_property(self.obj, "func")
        self.assertEqual(found["value"]["name"], "first")
        self.assertIsNone(get_object_property(self.obj, "args"))

    def test_has_spread_property(self):
        """Test spread detection, including the older property spread node."""
        self.assertTrue(has_spread_property(self.obj))
        legacy = {"type": "ObjectExpression", "properties": [{"type": "ExperimentalSpreadProperty"}]}
        self.assertTrue(has_spread_property(legacy))
        self.assertFalse(has_spread_property({"type": "ObjectExpression", "properties": []}))


class TestNodeHelpers(unittest.TestCase):
    """Test cases for generic node helpers."""

    def test_node_type_and_chain(self):
        """Test type tags and optional-chain unwrapping."""
        inner = member(ident("a"), ident("b"))
        self.assertEqual(node_type(inner), "MemberExpression")
        self.assertIsNone(node_type("not a node"))
        self.assertIs(unwrap_chain({"type": "ChainExpression", "expression": inner}), inner)
        self.assertIs(unwrap_chain(inner), inner)

    def test_is_function_like(self):
        """Test the three function node types."""
        for kind in ("FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"):
            self.assertTrue(is_function_like({"type": kind}))
        self.assertFalse(is_function_like({"type": "ClassExpression"}))
        self.assertFalse(is_function_like(None))

    def test_iter_child_nodes(self):
        """Test children are yielded in order and metadata is skipped."""
        node = {
            "type": "CallExpression",
            "callee": ident("f"),
            "arguments": [ident("a"), None, ident("b")],
            "loc": {"start": {"line": 1, "column": 0}},
            "range": [0, 7],
        }
        self.assertEqual([child["name"] for child in iter_child_nodes(node)], ["f", "a", "b"])

    def test_node_location_and_snippet(self):
        """Test locations and source snippets."""
        code = "let x = run(cfg);"
        node = {"type": "CallExpression", "loc": {"start": {"line": 1, "column": 8}}, "range": [8, 16]}
        self.assertEqual(node_location(node), (1, 8))
        self.assertEqual(node_location(None), (0, 0))
        self.assertEqual(get_code_snippet(node, code), "run(cfg)")
        self.assertEqual(get_code_snippet({"type": "Identifier"}, code), "")
        self.assertEqual(get_code_snippet(node, ""), "")

    def test_type_only_references(self):
        """Test type-level references are recognized."""
        scope = None
        value_ref = Reference(identifier=ident("a"), from_scope=scope)
        type_ref = Reference(identifier=ident("T"), from_scope=scope,
                             is_type_reference=True, is_value_reference=False)
        self.assertFalse(is_type_only_reference(value_ref))
        self.assertTrue(is_type_only_reference(type_ref))


if __name__ == '__main__':
    unittest.main()
