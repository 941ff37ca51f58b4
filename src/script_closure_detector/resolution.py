"""
Alias resolution for the extension script-injection API.

Decides whether an arbitrary expression denotes
``chrome.scripting.executeScript`` (or the ``browser`` equivalent) after
following the indirections real code uses: renaming, destructuring,
``.bind()``, object-literal wrappers, optional chaining and computed access
with literal keys.

Resolution is a search over goals of the form "does this node denote X",
where X is one of four roles:

    host       - the extension namespace (``chrome`` / ``browser``)
    scripting  - ``<host>.scripting``
    execute    - ``<scripting>.executeScript``
    container  - an object literal holding ``executeScript: <execute>``

Every rule below is a disjunction, so the search stops at the first goal
that matches. It runs on an explicit stack; a per-call visited set keyed by
(role, variable) stops alias cycles such as ``a = b; b = a``.
"""

from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

from .ast_utils import (
    get_member_property_name,
    get_static_property_name,
    node_type,
    unwrap_chain,
)
from .scope import Definition, Scope, Variable
from .scope_index import ScopeIndex, is_imported_variable


HOST_NAMESPACES = frozenset({"chrome", "browser"})
SCRIPTING_PROPERTY = "scripting"
EXECUTE_SCRIPT_METHOD = "executeScript"

# Globals through which ``Reflect`` is commonly reached
REFLECT_HOLDERS = frozenset({"globalThis", "window", "self"})

HOST = "host"
SCRIPTING = "scripting"
EXECUTE = "execute"
CONTAINER = "container"


class _Goal:
    """One pending question in the search, linked to the goal that spawned it."""

    __slots__ = ("role", "node", "scope", "parent", "variable")

    def __init__(self, role: str, node: Any, scope: Optional[Scope], parent: Optional["_Goal"] = None):
        self.role = role
        self.node = node
        self.scope = scope
        self.parent = parent
        self.variable: Optional[Variable] = None


def find_destructured_binding(definition: Definition, local_name: str) -> Optional[Tuple[Optional[str], Any]]:
    """
    Locate ``local_name`` in an object-pattern declarator.

    For ``const { executeScript: run = x } = src`` and ``run`` this returns
    ``('executeScript', src)``. Only top-level pattern properties are
    considered.

    Returns:
        (source key name or None if computed, declarator init), or None
        when the definition is not such a binding
    """
    declarator = definition.node
    if node_type(declarator) != "VariableDeclarator":
        return None
    pattern = declarator.get("id")
    if node_type(pattern) != "ObjectPattern":
        return None

    for prop in pattern.get("properties") or []:
        if node_type(prop) != "Property":
            continue
        value = prop.get("value")
        if node_type(value) == "AssignmentPattern":
            value = value.get("left")
        if node_type(value) != "Identifier" or value.get("name") != local_name:
            continue
        key_name = None if prop.get("computed") else get_static_property_name(prop.get("key"))
        return key_name, declarator.get("init")
    return None


def is_reflect_object(node: Any) -> bool:
    """True for ``Reflect`` or ``globalThis.Reflect`` / ``window.Reflect`` / ``self.Reflect``."""
    expr = unwrap_chain(node)
    kind = node_type(expr)
    if kind == "Identifier":
        return expr.get("name") == "Reflect"
    if kind != "MemberExpression" or get_member_property_name(expr) != "Reflect":
        return False
    base = unwrap_chain(expr.get("object"))
    return node_type(base) == "Identifier" and base.get("name") in REFLECT_HOLDERS


class ExecuteScriptResolver:
    """
    Answers "does this expression denote the injection API?".

    One resolver serves one file pass. Verdicts for ``execute``-role
    variables are cached by variable identity once a search finishes.
    """

    def __init__(self, scope_index: ScopeIndex, hosts: frozenset = HOST_NAMESPACES):
        self.scope_index = scope_index
        self.hosts = frozenset(hosts)
        self._reference_cache: Dict[Variable, bool] = {}

    # ------------------------------------------------------------------
    # public queries

    def is_execute_script_reference(self, node: Any, scope: Optional[Scope] = None) -> bool:
        return self._search(EXECUTE, node, scope)

    def is_scripting_expression(self, node: Any, scope: Optional[Scope] = None) -> bool:
        return self._search(SCRIPTING, node, scope)

    def is_host_expression(self, node: Any, scope: Optional[Scope] = None) -> bool:
        return self._search(HOST, node, scope)

    def is_execute_script_container(self, node: Any, scope: Optional[Scope] = None) -> bool:
        return self._search(CONTAINER, node, scope)

    def cached_verdict(self, variable: Variable) -> Optional[bool]:
        """Return the cached ``execute`` verdict for ``variable``, if any."""
        return self._reference_cache.get(variable)

    # ------------------------------------------------------------------
    # search

    def _search(self, role: str, node: Any, scope: Optional[Scope]) -> bool:
        if node is None:
            return False
        stack = [_Goal(role, node, self.scope_index.scope_for_node(node, scope))]
        visited: Set[Tuple[str, Variable]] = set()
        reached: List[Variable] = []

        while stack:
            goal = stack.pop()
            outcome = self._expand(goal, visited, reached)
            if outcome is True:
                self._remember_match(goal)
                return True
            stack.extend(reversed(outcome))

        # Exhausted: nothing reached can lead to a match
        for variable in reached:
            self._reference_cache[variable] = False
        return False

    def _remember_match(self, goal: Optional[_Goal]) -> None:
        while goal is not None:
            if goal.role == EXECUTE and goal.variable is not None:
                self._reference_cache[goal.variable] = True
            goal = goal.parent

    def _child(self, parent: _Goal, role: str, node: Any) -> _Goal:
        scope = self.scope_index.scope_for_node(node, parent.scope)
        return _Goal(role, node, scope, parent)

    def _expand(self, goal: _Goal, visited: Set[Tuple[str, Variable]],
                reached: List[Variable]) -> Union[bool, List[_Goal]]:
        """Return True if ``goal`` matches outright, else its sub-goals."""
        expr = unwrap_chain(goal.node)
        kind = node_type(expr)
        role = goal.role

        if kind == "Identifier":
            if role == HOST and expr.get("name") in self.hosts:
                return True
            return self._expand_identifier(goal, expr, visited, reached)

        if kind == "MemberExpression":
            name = get_member_property_name(expr)
            target = expr.get("object")
            if role == SCRIPTING and name == SCRIPTING_PROPERTY:
                return [self._child(goal, HOST, target)]
            if role == EXECUTE and name == EXECUTE_SCRIPT_METHOD:
                return [
                    self._child(goal, SCRIPTING, target),
                    self._child(goal, CONTAINER, target),
                ]
            return []

        if kind == "CallExpression" and role == EXECUTE:
            callee = unwrap_chain(expr.get("callee"))
            if get_member_property_name(callee) == "bind":
                return [self._child(goal, EXECUTE, callee.get("object"))]
            return []

        if kind == "ObjectExpression" and role == CONTAINER:
            return [
                self._child(goal, EXECUTE, prop.get("value"))
                for prop in expr.get("properties") or []
                if node_type(prop) == "Property"
                and not prop.get("computed")
                and get_static_property_name(prop.get("key")) == EXECUTE_SCRIPT_METHOD
            ]

        return []

    def _expand_identifier(self, goal: _Goal, identifier: Dict[str, Any],
                           visited: Set[Tuple[str, Variable]],
                           reached: List[Variable]) -> Union[bool, List[_Goal]]:
        variable = self.scope_index.resolve_identifier(identifier, goal.scope)
        # Imports are never treated as API aliases
        if variable is None or is_imported_variable(variable):
            return []

        role = goal.role
        if role == EXECUTE:
            cached = self._reference_cache.get(variable)
            if cached is not None:
                return True if cached else []

        key = (role, variable)
        if key in visited:
            return []
        visited.add(key)
        goal.variable = variable
        if role == EXECUTE:
            reached.append(variable)

        successors = [self._child(goal, role, init) for init in self._initializers(variable)]
        if role == SCRIPTING:
            for source in self._destructured_sources(variable, SCRIPTING_PROPERTY):
                successors.append(self._child(goal, HOST, source))
        elif role == EXECUTE:
            for source in self._destructured_sources(variable, EXECUTE_SCRIPT_METHOD):
                successors.append(self._child(goal, SCRIPTING, source))
                successors.append(self._child(goal, CONTAINER, source))
        return successors

    # ------------------------------------------------------------------
    # binding sources

    @staticmethod
    def _initializers(variable: Variable) -> Iterator[Dict[str, Any]]:
        """Expressions directly assigned to ``variable``."""
        for definition in variable.defs:
            if definition.type != "Variable":
                continue
            declarator = definition.node
            if node_type(declarator) != "VariableDeclarator":
                continue
            if node_type(declarator.get("id")) == "Identifier" and declarator.get("init") is not None:
                yield declarator["init"]
        for reference in variable.references:
            if reference.write_expr is not None and not reference.init:
                yield reference.write_expr

    @staticmethod
    def _destructured_sources(variable: Variable, key_name: str) -> Iterator[Dict[str, Any]]:
        """Objects ``variable`` was destructured from under ``key_name``."""
        for definition in variable.defs:
            if definition.type != "Variable":
                continue
            binding = find_destructured_binding(definition, variable.name)
            if binding is None:
                continue
            bound_key, source = binding
            if bound_key == key_name and source is not None:
                yield source
