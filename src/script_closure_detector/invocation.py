"""
Extraction of the options object passed to a confirmed executeScript call.

Supported call shapes:

    ref(cfg)                                   -> cfg
    ref.call(thisArg, cfg)                     -> cfg
    ref.apply(thisArg, [cfg])                  -> cfg
    Reflect.apply(ref, thisArg, [cfg])         -> cfg

``.apply`` forms whose argument list is not an array literal, or whose
first element is missing or a spread, cannot be analyzed statically and are
reported as dynamic.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .ast_utils import get_member_property_name, node_type, unwrap_chain
from .resolution import EXECUTE_SCRIPT_METHOD, SCRIPTING_PROPERTY, ExecuteScriptResolver, is_reflect_object
from .scope_index import ScopeIndex


INVOKE_METHODS = frozenset({"call", "apply"})

# Member names a callee must end in to be worth resolving at all
CANDIDATE_PROPERTY_NAMES = frozenset({
    EXECUTE_SCRIPT_METHOD,
    SCRIPTING_PROPERTY,
    "call",
    "apply",
    "bind",
    "Reflect",
})


@dataclass
class InvocationMatch:
    """
    Outcome of matching one call expression.

    Attributes:
        matched: The call invokes the injection API
        config_node: The options expression, when it could be located
        dynamic: The options cannot be extracted statically
    """
    matched: bool
    config_node: Optional[Dict[str, Any]] = None
    dynamic: bool = False


def _is_bind_call(node: Any) -> bool:
    expr = unwrap_chain(node)
    if node_type(expr) != "CallExpression":
        return False
    return get_member_property_name(unwrap_chain(expr.get("callee"))) == "bind"


def is_potential_execute_script_shape(callee_node: Any) -> bool:
    """Cheap structural test run before any alias resolution."""
    callee = unwrap_chain(callee_node)
    kind = node_type(callee)
    if kind == "Identifier":
        return True
    if kind == "CallExpression":
        return _is_bind_call(callee)
    if kind != "MemberExpression":
        return False
    return get_member_property_name(callee) in CANDIDATE_PROPERTY_NAMES


def is_arity_compatible(call_node: Dict[str, Any]) -> bool:
    """
    Reject calls whose argument count no supported shape accepts.

    The API takes a single options object, so direct calls allow at most
    one argument while ``.call`` / ``.apply`` need at least two.
    """
    callee = unwrap_chain(call_node.get("callee"))
    arg_count = len(call_node.get("arguments") or [])
    kind = node_type(callee)

    if kind in ("Identifier", "CallExpression"):
        return arg_count <= 1
    if kind != "MemberExpression":
        return False

    name = get_member_property_name(callee)
    if name == EXECUTE_SCRIPT_METHOD:
        return arg_count <= 1
    if name in INVOKE_METHODS:
        return arg_count >= 2
    return True


def _argument(arguments: List[Any], index: int) -> Optional[Dict[str, Any]]:
    if index < len(arguments):
        return arguments[index]
    return None


class InvocationConfigExtractor:
    """Matches call expressions against the API and pulls out their options."""

    def __init__(self, resolver: ExecuteScriptResolver, scope_index: ScopeIndex):
        self.resolver = resolver
        self.scope_index = scope_index

    def extract(self, call_node: Dict[str, Any]) -> InvocationMatch:
        """
        Match ``call_node`` and locate its options expression.

        Args:
            call_node: CallExpression node

        Returns:
            InvocationMatch describing the call
        """
        call_scope = self.scope_index.scope_of(call_node)
        callee = unwrap_chain(call_node.get("callee"))
        arguments = call_node.get("arguments") or []

        if callee is None:
            return InvocationMatch(matched=False)
        if self.resolver.is_execute_script_reference(callee, call_scope):
            return InvocationMatch(matched=True, config_node=_argument(arguments, 0))
        if node_type(callee) != "MemberExpression":
            return InvocationMatch(matched=False)

        invoke_name = get_member_property_name(callee)
        if invoke_name not in INVOKE_METHODS:
            return InvocationMatch(matched=False)

        via_reflect = invoke_name == "apply" and is_reflect_object(callee.get("object"))
        target = _argument(arguments, 0) if via_reflect else callee.get("object")
        if not self.resolver.is_execute_script_reference(target, call_scope):
            return InvocationMatch(matched=False)

        if invoke_name == "call":
            return InvocationMatch(matched=True, config_node=_argument(arguments, 1))

        container = unwrap_chain(_argument(arguments, 2 if via_reflect else 1))
        if node_type(container) != "ArrayExpression":
            return InvocationMatch(matched=True, dynamic=True)

        elements = container.get("elements") or []
        first = elements[0] if elements else None
        if first is None or node_type(first) == "SpreadElement":
            return InvocationMatch(matched=True, dynamic=True)
        return InvocationMatch(matched=True, config_node=first)
