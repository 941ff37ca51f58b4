"""
Lexical scope analysis for ESTree dictionaries.

Builds the scope graph the rest of the engine queries: nested scopes, the
variables each scope declares, their definitions, and every identifier
reference together with the variable it resolves to. The model follows
eslint-scope closely so that rule logic written against it carries over.

The graph is built once per file and treated as read-only afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from .ast_utils import iter_child_nodes, node_type


READ = 0x1
WRITE = 0x2
READ_WRITE = READ | WRITE

# Scopes that receive hoisted ``var`` declarations
VARIABLE_SCOPE_TYPES = frozenset({"global", "module", "function"})


@dataclass(eq=False)
class Definition:
    """Where and how a variable was declared."""
    type: str  # 'Variable', 'FunctionName', 'ClassName', 'Parameter', 'ImportBinding', 'CatchClause'
    name: Dict[str, Any]
    node: Dict[str, Any]
    parent: Optional[Dict[str, Any]] = None
    kind: Optional[str] = None  # var / let / const for 'Variable'


@dataclass(eq=False)
class Variable:
    name: str
    scope: "Scope"
    defs: List[Definition] = field(default_factory=list)
    identifiers: List[Dict[str, Any]] = field(default_factory=list)
    references: List["Reference"] = field(default_factory=list)


@dataclass(eq=False)
class Reference:
    """A single use of an identifier."""
    identifier: Dict[str, Any]
    from_scope: "Scope"
    flag: int = READ
    write_expr: Optional[Dict[str, Any]] = None
    init: bool = False
    resolved: Optional[Variable] = None
    is_type_reference: bool = False
    is_value_reference: bool = True

    def is_read(self) -> bool:
        return bool(self.flag & READ)

    def is_write(self) -> bool:
        return bool(self.flag & WRITE)


@dataclass(eq=False)
class Scope:
    type: str
    block: Dict[str, Any]
    upper: Optional["Scope"] = None
    child_scopes: List["Scope"] = field(default_factory=list)
    set: Dict[str, Variable] = field(default_factory=dict)
    variables: List[Variable] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)
    through: List[Reference] = field(default_factory=list)
    _left: List[Reference] = field(default_factory=list, repr=False)

    @property
    def variable_scope(self) -> "Scope":
        scope = self
        while scope.type not in VARIABLE_SCOPE_TYPES and scope.upper is not None:
            scope = scope.upper
        return scope

    def declare(self, name: str, definition: Optional[Definition] = None) -> Variable:
        variable = self.set.get(name)
        if variable is None:
            variable = Variable(name=name, scope=self)
            self.set[name] = variable
            self.variables.append(variable)
        if definition is not None:
            variable.defs.append(definition)
            variable.identifiers.append(definition.name)
        return variable

    def close(self) -> None:
        """Resolve pending references here or hand them to the enclosing scope."""
        for reference in self._left:
            variable = self.set.get(reference.identifier.get("name"))
            if variable is not None:
                reference.resolved = variable
                variable.references.append(reference)
                continue
            self.through.append(reference)
            if self.upper is not None:
                self.upper._left.append(reference)
        self._left = []


class ScopeManager:
    """
    Result of scope analysis for one Program.

    Attributes:
        scopes: All scopes in creation order (global first)
        global_scope: The outermost scope
    """

    def __init__(self) -> None:
        self.scopes: List[Scope] = []
        self.global_scope: Optional[Scope] = None
        self._owned: Dict[int, Scope] = {}
        self._enclosing: Dict[int, Scope] = {}

    def acquire(self, node: Any) -> Optional[Scope]:
        """Return the scope created by ``node`` itself, if any."""
        if not isinstance(node, dict):
            return None
        return self._owned.get(id(node))

    def scope_of(self, node: Any) -> Optional[Scope]:
        """
        Return the innermost scope for ``node``.

        A scope-creating node (function, block, ...) maps to its own scope;
        any other node maps to the scope it appears in.
        """
        if not isinstance(node, dict):
            return None
        owned = self._owned.get(id(node))
        if owned is not None:
            return owned
        return self._enclosing.get(id(node))


class ScopeAnalyzer:
    """
    Walks an ESTree Program and produces a ScopeManager.

    Declarations are collected while walking; references are resolved when
    their scope closes, so hoisted names are visible regardless of order.
    """

    def __init__(self, ambient_globals: Iterable[str] = ()):
        self.ambient_globals = tuple(ambient_globals)
        self.manager = ScopeManager()
        self.current: Optional[Scope] = None

    def analyze(self, program: Dict[str, Any]) -> ScopeManager:
        self._record(program)
        global_scope = self._open("global", program)
        self.manager.global_scope = global_scope
        for name in self.ambient_globals:
            global_scope.declare(name)

        if program.get("sourceType") == "module":
            module_scope = self._open("module", program)
            self._visit_statements(program.get("body"))
            self._close(module_scope)
        else:
            self._visit_statements(program.get("body"))
        self._close(global_scope)
        return self.manager

    # ------------------------------------------------------------------
    # scope bookkeeping

    def _open(self, scope_type: str, block: Dict[str, Any]) -> Scope:
        scope = Scope(type=scope_type, block=block, upper=self.current)
        if self.current is not None:
            self.current.child_scopes.append(scope)
        self.manager.scopes.append(scope)
        # The global scope wins for Program when a module scope is nested in it
        self.manager._owned.setdefault(id(block), scope)
        self.current = scope
        return scope

    def _close(self, scope: Scope) -> None:
        scope.close()
        self.current = scope.upper

    def _record(self, node: Dict[str, Any]) -> None:
        if self.current is not None:
            self.manager._enclosing.setdefault(id(node), self.current)

    def _reference(self, identifier: Dict[str, Any], flag: int = READ,
                   write_expr: Optional[Dict[str, Any]] = None, init: bool = False) -> None:
        self._record(identifier)
        reference = Reference(
            identifier=identifier,
            from_scope=self.current,
            flag=flag,
            write_expr=write_expr,
            init=init,
        )
        self.current.references.append(reference)
        self.current._left.append(reference)

    # ------------------------------------------------------------------
    # traversal

    def visit(self, node: Any) -> None:
        if not isinstance(node, dict) or "type" not in node:
            return
        self._record(node)
        handler = getattr(self, "visit_" + node["type"], None)
        if handler is None:
            self.generic_visit(node)
        else:
            handler(node)

    def generic_visit(self, node: Dict[str, Any]) -> None:
        for child in iter_child_nodes(node):
            self.visit(child)

    def _visit_statements(self, statements: Optional[List[Any]]) -> None:
        for statement in statements or []:
            self.visit(statement)

    def _walk_pattern(self, pattern: Any, on_identifier: Callable[[Dict[str, Any]], None]) -> None:
        """
        Call ``on_identifier`` for every binding identifier in ``pattern``.

        Default values and computed keys met on the way are visited as
        ordinary expressions in the current scope.
        """
        kind = node_type(pattern)
        if kind is None:
            return
        self._record(pattern)
        if kind == "Identifier":
            on_identifier(pattern)
        elif kind == "ObjectPattern":
            for prop in pattern.get("properties") or []:
                self._record(prop)
                if node_type(prop) == "Property":
                    if prop.get("computed"):
                        self.visit(prop.get("key"))
                    self._walk_pattern(prop.get("value"), on_identifier)
                else:
                    self._walk_pattern(prop, on_identifier)
        elif kind == "ArrayPattern":
            for element in pattern.get("elements") or []:
                self._walk_pattern(element, on_identifier)
        elif kind == "AssignmentPattern":
            self._walk_pattern(pattern.get("left"), on_identifier)
            self.visit(pattern.get("right"))
        elif kind in ("RestElement", "ExperimentalRestProperty"):
            self._walk_pattern(pattern.get("argument"), on_identifier)
        else:
            # MemberExpression targets in assignment patterns
            self.visit(pattern)

    # ------------------------------------------------------------------
    # declarations

    def visit_VariableDeclaration(self, node: Dict[str, Any]) -> None:
        kind = node.get("kind") or "var"
        target = self.current.variable_scope if kind == "var" else self.current

        for declarator in node.get("declarations") or []:
            self._record(declarator)
            init = declarator.get("init")

            def declare(identifier: Dict[str, Any], declarator: Dict[str, Any] = declarator,
                        init: Optional[Dict[str, Any]] = init) -> None:
                target.declare(identifier.get("name"), Definition(
                    type="Variable",
                    name=identifier,
                    node=declarator,
                    parent=node,
                    kind=kind,
                ))
                if init is not None:
                    self._reference(identifier, WRITE, write_expr=init, init=True)

            self._walk_pattern(declarator.get("id"), declare)
            self.visit(init)

    def visit_FunctionDeclaration(self, node: Dict[str, Any]) -> None:
        identifier = node.get("id")
        if identifier is not None:
            self._record(identifier)
            self.current.declare(identifier.get("name"), Definition(
                type="FunctionName",
                name=identifier,
                node=node,
            ))
        self._visit_function(node)

    def visit_FunctionExpression(self, node: Dict[str, Any]) -> None:
        self._visit_function(node)

    def visit_ArrowFunctionExpression(self, node: Dict[str, Any]) -> None:
        self._visit_function(node)

    def _visit_function(self, node: Dict[str, Any]) -> None:
        scope = self._open("function", node)

        # A function expression's own name is only visible inside it
        identifier = node.get("id")
        if node.get("type") == "FunctionExpression" and identifier is not None:
            self._record(identifier)
            scope.declare(identifier.get("name"), Definition(
                type="FunctionName",
                name=identifier,
                node=node,
            ))
        if node.get("type") != "ArrowFunctionExpression":
            scope.declare("arguments")

        for param in node.get("params") or []:
            self._walk_pattern(param, lambda ident: scope.declare(ident.get("name"), Definition(
                type="Parameter",
                name=ident,
                node=node,
            )))

        body = node.get("body")
        if node_type(body) == "BlockStatement":
            self._record(body)
            self._visit_statements(body.get("body"))
        else:
            self.visit(body)
        self._close(scope)

    def visit_ClassDeclaration(self, node: Dict[str, Any]) -> None:
        identifier = node.get("id")
        if identifier is not None:
            self._record(identifier)
            self.current.declare(identifier.get("name"), Definition(
                type="ClassName",
                name=identifier,
                node=node,
            ))
        self._visit_class(node)

    def visit_ClassExpression(self, node: Dict[str, Any]) -> None:
        self._visit_class(node)

    def _visit_class(self, node: Dict[str, Any]) -> None:
        self.visit(node.get("superClass"))
        scope = self._open("class", node)
        identifier = node.get("id")
        if identifier is not None:
            scope.declare(identifier.get("name"), Definition(
                type="ClassName",
                name=identifier,
                node=node,
            ))
        self.visit(node.get("body"))
        self._close(scope)

    def visit_MethodDefinition(self, node: Dict[str, Any]) -> None:
        if node.get("computed"):
            self.visit(node.get("key"))
        self.visit(node.get("value"))

    visit_PropertyDefinition = visit_MethodDefinition

    def visit_Property(self, node: Dict[str, Any]) -> None:
        if node.get("computed"):
            self.visit(node.get("key"))
        self.visit(node.get("value"))

    def visit_ImportDeclaration(self, node: Dict[str, Any]) -> None:
        for specifier in node.get("specifiers") or []:
            self._record(specifier)
            local = specifier.get("local")
            if local is None:
                continue
            self._record(local)
            self.current.declare(local.get("name"), Definition(
                type="ImportBinding",
                name=local,
                node=specifier,
                parent=node,
            ))

    def visit_ExportNamedDeclaration(self, node: Dict[str, Any]) -> None:
        if node.get("declaration") is not None:
            self.visit(node.get("declaration"))
            return
        if node.get("source") is not None:
            return
        for specifier in node.get("specifiers") or []:
            self._record(specifier)
            local = specifier.get("local")
            if node_type(local) == "Identifier":
                self._reference(local)

    def visit_ExportAllDeclaration(self, node: Dict[str, Any]) -> None:
        return

    # ------------------------------------------------------------------
    # block-level scopes

    def visit_BlockStatement(self, node: Dict[str, Any]) -> None:
        scope = self._open("block", node)
        self._visit_statements(node.get("body"))
        self._close(scope)

    def visit_StaticBlock(self, node: Dict[str, Any]) -> None:
        scope = self._open("class-static-block", node)
        self._visit_statements(node.get("body"))
        self._close(scope)

    def visit_SwitchStatement(self, node: Dict[str, Any]) -> None:
        self.visit(node.get("discriminant"))
        scope = self._open("switch", node)
        for case in node.get("cases") or []:
            self.visit(case)
        self._close(scope)

    def visit_CatchClause(self, node: Dict[str, Any]) -> None:
        scope = self._open("catch", node)
        param = node.get("param")
        if param is not None:
            self._walk_pattern(param, lambda ident: scope.declare(ident.get("name"), Definition(
                type="CatchClause",
                name=ident,
                node=node,
            )))
        self.visit(node.get("body"))
        self._close(scope)

    def visit_ForStatement(self, node: Dict[str, Any]) -> None:
        init = node.get("init")
        scope = None
        if node_type(init) == "VariableDeclaration" and init.get("kind") != "var":
            scope = self._open("for", node)
        self.visit(init)
        self.visit(node.get("test"))
        self.visit(node.get("update"))
        self.visit(node.get("body"))
        if scope is not None:
            self._close(scope)

    def visit_ForInStatement(self, node: Dict[str, Any]) -> None:
        left = node.get("left")
        right = node.get("right")
        scope = None
        if node_type(left) == "VariableDeclaration":
            self._record(left)
            kind = left.get("kind") or "var"
            if kind != "var":
                scope = self._open("for", node)
            target = self.current.variable_scope if kind == "var" else self.current
            for declarator in left.get("declarations") or []:
                self._record(declarator)

                def declare(identifier: Dict[str, Any], declarator: Dict[str, Any] = declarator) -> None:
                    target.declare(identifier.get("name"), Definition(
                        type="Variable",
                        name=identifier,
                        node=declarator,
                        parent=left,
                        kind=kind,
                    ))
                    self._reference(identifier, WRITE, init=True)

                self._walk_pattern(declarator.get("id"), declare)
        else:
            self._walk_pattern(left, lambda ident: self._reference(ident, WRITE))
        self.visit(right)
        self.visit(node.get("body"))
        if scope is not None:
            self._close(scope)

    visit_ForOfStatement = visit_ForInStatement

    # ------------------------------------------------------------------
    # expressions

    def visit_Identifier(self, node: Dict[str, Any]) -> None:
        self._reference(node)

    def visit_AssignmentExpression(self, node: Dict[str, Any]) -> None:
        left = node.get("left")
        right = node.get("right")
        plain = node.get("operator") == "="
        if node_type(left) == "Identifier":
            if plain:
                self._reference(left, WRITE, write_expr=right)
            else:
                self._reference(left, READ_WRITE)
        elif node_type(left) in ("ObjectPattern", "ArrayPattern"):
            self._walk_pattern(left, lambda ident: self._reference(ident, WRITE))
        else:
            self.visit(left)
        self.visit(right)

    def visit_UpdateExpression(self, node: Dict[str, Any]) -> None:
        argument = node.get("argument")
        if node_type(argument) == "Identifier":
            self._reference(argument, READ_WRITE)
        else:
            self.visit(argument)

    def visit_MemberExpression(self, node: Dict[str, Any]) -> None:
        self.visit(node.get("object"))
        if node.get("computed"):
            self.visit(node.get("property"))

    def visit_LabeledStatement(self, node: Dict[str, Any]) -> None:
        self.visit(node.get("body"))

    def visit_BreakStatement(self, node: Dict[str, Any]) -> None:
        return

    visit_ContinueStatement = visit_BreakStatement

    def visit_MetaProperty(self, node: Dict[str, Any]) -> None:
        return


def analyze_scopes(program: Dict[str, Any], ambient_globals: Iterable[str] = ()) -> ScopeManager:
    """
    Build the scope graph for a parsed Program.

    Args:
        program: ESTree Program dictionary
        ambient_globals: Names declared in the global scope without any
            definition (platform globals such as ``window``)

    Returns:
        ScopeManager for the program
    """
    return ScopeAnalyzer(ambient_globals).analyze(program)
