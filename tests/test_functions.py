"""
Tests for resolving the injected function.
"""

import unittest

from script_closure_detector.analysis import iter_call_expressions
from script_closure_detector.functions import IMPORTED, UNRESOLVED, resolve_injected_function
from script_closure_detector.parser import JavaScriptParser
from script_closure_detector.scope import analyze_scopes
from script_closure_detector.scope_index import ScopeIndex


class TestResolveInjectedFunction(unittest.TestCase):
    """Test cases for resolve_injected_function."""

    def resolve(self, code):
        parsed = JavaScriptParser().parse_code(code, "fixture.js")
        self.assertIsNotNone(parsed["ast"], parsed.get("parse_error"))
        index = ScopeIndex(analyze_scopes(parsed["ast"]))
        value = list(iter_call_expressions(parsed["ast"]))[-1]["arguments"][0]
        return resolve_injected_function(value, index)

    def test_inline_functions(self):
        """Test inline arrow and function expressions are returned as-is."""
        for code, node_type in (
            ("inject(() => 1);", "ArrowFunctionExpression"),
            ("inject(async function named() {});", "FunctionExpression"),
        ):
            resolution = self.resolve(code)
            self.assertIsNone(resolution.error)
            self.assertEqual(resolution.function_node["type"], node_type)

    def test_function_declaration(self):
        """Test identifiers naming a function declaration."""
        resolution = self.resolve("inject(bridge); function bridge(a) { return a; }")
        self.assertEqual(resolution.function_node["type"], "FunctionDeclaration")
        self.assertEqual(resolution.function_node["id"]["name"], "bridge")

    def test_variable_initialized_with_function(self):
        """Test identifiers naming a variable holding a function literal."""
        for code in (
            "const bridge = () => 1; inject(bridge);",
            "let bridge = function () {}; inject(bridge);",
        ):
            resolution = self.resolve(code)
            self.assertIsNone(resolution.error, code)
            self.assertIn(resolution.function_node["type"], ("ArrowFunctionExpression", "FunctionExpression"))

    def test_imported_function(self):
        """Test imported bindings are rejected as imports."""
        resolution = self.resolve("import bridge from './bridge'; inject(bridge);")
        self.assertEqual(resolution.error, IMPORTED)
        self.assertIsNone(resolution.function_node)

    def test_unresolvable_values(self):
        """Test values that are not provably local functions."""
        for code in (
            "inject(undeclaredBridge);",
            "const bridge = makeBridge(); inject(bridge);",
            "let bridge; bridge = () => 1; inject(bridge);",
            "inject(helpers.bridge);",
            "inject('bridge');",
            "function outer(bridge) { inject(bridge); }",
        ):
            resolution = self.resolve(code)
            self.assertEqual(resolution.error, UNRESOLVED, code)
            self.assertIsNone(resolution.function_node)


if __name__ == '__main__':
    unittest.main()
