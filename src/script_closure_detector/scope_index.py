"""
Memoized queries over a scope graph.

The index only needs two capabilities from the graph it wraps:
``scope_of(node)`` and scopes exposing ``set`` / ``upper``. Any lookup that
cannot be answered degrades to None so callers treat it as "cannot confirm".
"""

from collections import deque
from typing import Any, Dict, List, Optional, Tuple

from .scope import Scope, ScopeManager, Variable


def is_imported_variable(variable: Optional[Variable]) -> bool:
    """True if any definition of ``variable`` is an import binding."""
    if variable is None:
        return False
    return any(definition.type == "ImportBinding" for definition in variable.defs)


def collect_scope_tree(root_scope: Optional[Scope]) -> List[Scope]:
    """
    Return ``root_scope`` and all of its descendants, breadth-first.

    Args:
        root_scope: Scope to start from (None yields an empty list)

    Returns:
        Scopes in visit order, each listed once
    """
    scopes: List[Scope] = []
    seen = set()
    queue = deque([root_scope])
    while queue:
        scope = queue.popleft()
        if scope is None or scope in seen:
            continue
        seen.add(scope)
        scopes.append(scope)
        queue.extend(scope.child_scopes)
    return scopes


class ScopeIndex:
    """
    Cached scope and variable lookups for one file pass.

    Caches are keyed by object identity and live exactly as long as the
    index, which is created per file and dropped afterwards.
    """

    def __init__(self, scope_manager: ScopeManager):
        self.scope_manager = scope_manager
        self._scope_cache: Dict[int, Optional[Scope]] = {}
        self._name_cache: Dict[Tuple[int, str], Optional[Variable]] = {}
        self._identifier_cache: Dict[Tuple[int, Optional[int]], Optional[Variable]] = {}

    def scope_of(self, node: Any) -> Optional[Scope]:
        if not isinstance(node, dict):
            return None
        key = id(node)
        if key not in self._scope_cache:
            self._scope_cache[key] = self.scope_manager.scope_of(node)
        return self._scope_cache[key]

    def scope_for_node(self, node: Any, fallback: Optional[Scope]) -> Optional[Scope]:
        """Return the scope of ``node``, or ``fallback`` when it is unknown."""
        scope = self.scope_of(node)
        return scope if scope is not None else fallback

    def resolve_variable(self, scope: Optional[Scope], name: Optional[str]) -> Optional[Variable]:
        """
        Look ``name`` up through the scope chain, innermost first.

        Returns:
            The Variable, or None when no scope on the chain declares it
        """
        if scope is None or not name:
            return None
        key = (id(scope), name)
        if key in self._name_cache:
            return self._name_cache[key]

        variable = None
        cursor: Optional[Scope] = scope
        while cursor is not None:
            if name in cursor.set:
                variable = cursor.set[name]
                break
            cursor = cursor.upper

        self._name_cache[key] = variable
        return variable

    def resolve_identifier(self, identifier: Any, hint_scope: Optional[Scope] = None) -> Optional[Variable]:
        """
        Resolve an Identifier node to its Variable.

        The same identifier can be queried under different hint scopes while
        an alias chain is unwound, so results are cached per pair.

        Args:
            identifier: Identifier node
            hint_scope: Scope to look up from; the identifier's own scope
                is used when omitted
        """
        if not isinstance(identifier, dict) or identifier.get("type") != "Identifier":
            return None
        key = (id(identifier), id(hint_scope) if hint_scope is not None else None)
        if key in self._identifier_cache:
            return self._identifier_cache[key]

        lookup_scope = hint_scope if hint_scope is not None else self.scope_of(identifier)
        variable = self.resolve_variable(lookup_scope, identifier.get("name"))
        self._identifier_cache[key] = variable
        return variable
