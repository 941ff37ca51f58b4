"""
Helpers for reading ESTree nodes produced by the parser.

Nodes are plain dictionaries (esprima ``toDict()`` output) tagged by their
``type`` key. Nothing in here mutates a node.
"""

from typing import Any, Dict, Iterator, Optional, Tuple

FUNCTION_TYPES = frozenset({
    "FunctionDeclaration",
    "FunctionExpression",
    "ArrowFunctionExpression",
})

# Keys that never hold child nodes
NON_CHILD_KEYS = frozenset({
    "type",
    "loc",
    "range",
    "leadingComments",
    "trailingComments",
    "comments",
    "errors",
    "tokens",
})


def node_type(node: Any) -> Optional[str]:
    """Return the ESTree type tag of ``node``, or None for non-nodes."""
    if isinstance(node, dict):
        return node.get("type")
    return None


def unwrap_chain(node: Any) -> Any:
    """
    Strip one optional-chain wrapper.

    ``a?.b`` is parsed as ``ChainExpression(MemberExpression)``; callers
    want to reason about the inner expression.
    """
    if node_type(node) == "ChainExpression":
        return node.get("expression")
    return node


def _js_string(value: Any) -> str:
    """Convert a literal value the way JavaScript's String() would."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def get_static_property_name(node: Any) -> Optional[str]:
    """
    Return the compile-time name of a property key.

    Args:
        node: Identifier, Literal or TemplateLiteral key node

    Returns:
        The property name, or None when it cannot be known statically
    """
    kind = node_type(node)
    if kind == "Identifier":
        return node.get("name")
    if kind == "Literal":
        if node.get("regex"):
            return node.get("raw")
        return _js_string(node.get("value"))
    if kind == "TemplateLiteral" and not node.get("expressions"):
        quasis = node.get("quasis") or []
        if not quasis:
            return None
        return (quasis[0].get("value") or {}).get("cooked")
    return None


def get_member_property_name(node: Any) -> Optional[str]:
    """
    Return the static property name of a MemberExpression.

    ``a.b`` and ``a['b']`` both yield ``'b'``; ``a[b]`` yields None since
    ``b`` is a variable there.
    """
    if node_type(node) != "MemberExpression":
        return None
    prop = node.get("property")
    if node.get("computed") and node_type(prop) == "Identifier":
        return None
    return get_static_property_name(prop)


def get_object_property(object_expression: Dict[str, Any], property_name: str) -> Optional[Dict[str, Any]]:
    """
    Find a statically named property in an object literal.

    Computed keys and spread elements are skipped; the first match wins.
    """
    for prop in object_expression.get("properties") or []:
        if node_type(prop) != "Property" or prop.get("computed"):
            continue
        if get_static_property_name(prop.get("key")) == property_name:
            return prop
    return None


def has_spread_property(object_expression: Dict[str, Any]) -> bool:
    """True if an object literal contains ``...spread``."""
    return any(
        node_type(prop) in ("SpreadElement", "ExperimentalSpreadProperty")
        for prop in object_expression.get("properties") or []
    )


def is_function_like(node: Any) -> bool:
    return node_type(node) in FUNCTION_TYPES


def is_type_only_reference(reference: Any) -> bool:
    """True for references that only exist at the type level."""
    return (
        getattr(reference, "is_type_reference", False) is True
        and getattr(reference, "is_value_reference", True) is False
    )


def iter_child_nodes(node: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield the direct child nodes of ``node`` in source order."""
    for key, value in node.items():
        if key in NON_CHILD_KEYS:
            continue
        if isinstance(value, dict):
            if "type" in value:
                yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, dict) and "type" in item:
                    yield item


def node_location(node: Any) -> Tuple[int, int]:
    """Return the (line, column) where ``node`` starts, (0, 0) if unknown."""
    if not isinstance(node, dict):
        return 0, 0
    start = (node.get("loc") or {}).get("start") or {}
    return start.get("line") or 0, start.get("column") or 0


def get_code_snippet(node: Any, code: str) -> str:
    """Extract the source text of ``node`` using its ``range``."""
    if not isinstance(node, dict) or not code:
        return ""
    node_range = node.get("range")
    if not node_range:
        return ""
    start, end = node_range
    return code[start:end]
