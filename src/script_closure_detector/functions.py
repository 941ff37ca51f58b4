"""
Resolution of the function passed as ``func`` to executeScript.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .ast_utils import is_function_like, node_type, unwrap_chain
from .scope_index import ScopeIndex, is_imported_variable


IMPORTED = "imported"
UNRESOLVED = "unresolved"


@dataclass
class FunctionResolution:
    function_node: Optional[Dict[str, Any]] = None
    error: Optional[str] = None  # IMPORTED or UNRESOLVED


def resolve_injected_function(value_node: Any, scope_index: ScopeIndex) -> FunctionResolution:
    """
    Find the function a ``func`` value refers to.

    Inline function literals are returned as-is. Identifiers must resolve to
    a local function declaration or a variable initialized with a function
    literal; imported bindings are rejected separately so they can be
    reported with their own message.

    Args:
        value_node: The ``func`` property value
        scope_index: Scope index for the current file

    Returns:
        FunctionResolution with either ``function_node`` or ``error`` set
    """
    value = unwrap_chain(value_node)
    if is_function_like(value):
        return FunctionResolution(function_node=value)
    if node_type(value) != "Identifier":
        return FunctionResolution(error=UNRESOLVED)

    variable = scope_index.resolve_identifier(value)
    if variable is None:
        return FunctionResolution(error=UNRESOLVED)
    if is_imported_variable(variable):
        return FunctionResolution(error=IMPORTED)

    for definition in variable.defs:
        if definition.type == "FunctionName" and is_function_like(definition.node):
            return FunctionResolution(function_node=definition.node)
        if definition.type == "Variable" and node_type(definition.node) == "VariableDeclarator":
            init = definition.node.get("init")
            if is_function_like(init):
                return FunctionResolution(function_node=init)

    return FunctionResolution(error=UNRESOLVED)
