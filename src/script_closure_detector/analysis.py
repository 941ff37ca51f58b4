"""
Analysis module for detecting closures in injected extension scripts.

``chrome.scripting.executeScript({ func, args })`` serializes ``func`` and
runs it inside the page, where nothing from the extension's module scope
exists. Any outer variable the function reads is therefore a bug. This
module visits every call in a file, confirms which ones invoke the API and
checks the injected function for captured variables and inconsistent
``args``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .ast_utils import (
    get_code_snippet,
    get_object_property,
    has_spread_property,
    is_type_only_reference,
    iter_child_nodes,
    node_location,
    node_type,
    unwrap_chain,
)
from .functions import IMPORTED, resolve_injected_function
from .invocation import InvocationConfigExtractor, is_arity_compatible, is_potential_execute_script_shape
from .resolution import ExecuteScriptResolver
from .scope import analyze_scopes
from .scope_index import ScopeIndex, collect_scope_tree


MESSAGES = {
    "unresolvedFunc": (
        "`executeScript({ func })` must point to a local function declared in this file "
        "(inline it or define it above)."
    ),
    "importedFunc": (
        "`executeScript({ func })` cannot use an imported function. "
        "Define a local wrapper and pass input via `args`."
    ),
    "closureCapture": (
        "Injected function captures outer variable `%(name)s`. "
        "Move that value into `args` so `func` is self-contained."
    ),
    "missingArgs": (
        "Injected function has parameters but `args` is missing. "
        "Pass inputs with `executeScript({ ..., args: [...] })`."
    ),
    "invalidArgs": "`executeScript` `args` must be an array literal (`args: [...]`).",
    "dynamicConfig": (
        "`executeScript` options must be a static object literal (no spread/dynamic config) "
        "so `func` and `args` can be validated."
    ),
    "dynamicInvoke": (
        "`executeScript` call must pass statically analyzable options "
        "(`executeScript({...})`, `.call(_, {...})`, or `.apply(_, [{...}])`)."
    ),
}

SEVERITIES = {
    "closureCapture": "high",
    "importedFunc": "high",
    "unresolvedFunc": "high",
    "missingArgs": "medium",
    "invalidArgs": "medium",
    "dynamicConfig": "low",
    "dynamicInvoke": "low",
}


@dataclass
class Finding:
    """
    A single diagnostic reported at one source position.
    """
    severity: str  # 'high', 'medium', 'low'
    line: int
    column: int
    message: str
    code_snippet: str
    finding_type: str  # one of the MESSAGES keys
    data: Dict[str, str] = field(default_factory=dict)
    file: str = ""
    node: Optional[Dict[str, Any]] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "code_snippet": self.code_snippet,
            "type": self.finding_type,
            "data": dict(self.data),
        }


def iter_call_expressions(root: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield every CallExpression under ``root`` in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node_type(node) == "CallExpression":
            yield node
        stack.extend(reversed(list(iter_child_nodes(node))))


class ClosureCaptureRule:
    """
    Per-file checker for executeScript calls.

    Owns every cache used while checking one file: the scope graph, the
    scope index and the resolver's verdict cache. Create a new rule for each
    file.
    """

    def __init__(self, program: Dict[str, Any], filename: str = "", code: str = "",
                 ambient_globals: Iterable[str] = ()):
        self.filename = filename
        self.code = code
        self.scope_index = ScopeIndex(analyze_scopes(program, ambient_globals))
        self.resolver = ExecuteScriptResolver(self.scope_index)
        self.extractor = InvocationConfigExtractor(self.resolver, self.scope_index)
        self.findings: List[Finding] = []

    def report(self, node: Any, message_id: str, data: Optional[Dict[str, str]] = None) -> None:
        line, column = node_location(node)
        message = MESSAGES[message_id]
        if data:
            message = message % data
        self.findings.append(Finding(
            severity=SEVERITIES[message_id],
            line=line,
            column=column,
            message=message,
            code_snippet=get_code_snippet(node, self.code),
            finding_type=message_id,
            data=dict(data or {}),
            file=self.filename,
            node=node,
        ))

    def check_call(self, node: Dict[str, Any]) -> None:
        """Check one CallExpression; diagnostics are appended to ``findings``."""
        if not is_potential_execute_script_shape(node.get("callee")):
            return
        if not is_arity_compatible(node):
            return

        invocation = self.extractor.extract(node)
        if not invocation.matched:
            return
        if invocation.dynamic:
            self.report(node, "dynamicInvoke")
            return

        config = unwrap_chain(invocation.config_node)
        if node_type(config) != "ObjectExpression":
            self.report(node, "dynamicConfig")
            return
        # Keep going: the statically visible properties can still be checked
        if has_spread_property(config):
            self.report(config, "dynamicConfig")

        func_prop = get_object_property(config, "func")
        if func_prop is None:
            return

        func_value = unwrap_chain(func_prop.get("value"))
        resolution = resolve_injected_function(func_value, self.scope_index)
        if resolution.error == IMPORTED:
            self.report(func_value, "importedFunc")
            return
        if resolution.function_node is None:
            self.report(func_value if func_value is not None else func_prop, "unresolvedFunc")
            return

        self._check_arguments(resolution.function_node, config, func_prop)
        self._check_closure_capture(resolution.function_node)

    def _check_arguments(self, function_node: Dict[str, Any], config: Dict[str, Any],
                         func_prop: Dict[str, Any]) -> None:
        if not function_node.get("params"):
            return
        args_prop = get_object_property(config, "args")
        if args_prop is None:
            self.report(func_prop, "missingArgs")
        elif node_type(unwrap_chain(args_prop.get("value"))) != "ArrayExpression":
            self.report(args_prop.get("value"), "invalidArgs")

    def _check_closure_capture(self, function_node: Dict[str, Any]) -> None:
        """
        Report references that escape the injected function's scope tree.

        Variables without definitions are ambient globals (``window``,
        ``document``) and exist in the page too, so they are allowed.
        """
        function_scope = self.scope_index.scope_of(function_node)
        if function_scope is None:
            return

        scopes = collect_scope_tree(function_scope)
        allowed = set(scopes)
        reported_names = set()

        for scope in scopes:
            for reference in scope.references:
                variable = reference.resolved
                if variable is None or is_type_only_reference(reference):
                    continue
                if reference.init:
                    continue
                if not variable.defs:
                    continue
                if variable.scope in allowed:
                    continue

                name = reference.identifier.get("name")
                if name in reported_names:
                    continue
                reported_names.add(name)
                self.report(reference.identifier, "closureCapture", {"name": name})

    def run(self, program: Dict[str, Any]) -> List[Finding]:
        self.findings = []
        for call in iter_call_expressions(program):
            self.check_call(call)
        # Stable sort keeps per-call order for findings on the same position
        return sorted(self.findings, key=lambda finding: (finding.line, finding.column))


class ExecuteScriptClosureAnalyzer:
    """
    Analyzer for executeScript closure captures.

    Collects findings across the files it is given; per-file caches never
    outlive the file they were built for.
    """

    def __init__(self, verbose: bool = False, ambient_globals: Iterable[str] = ()):
        """
        Initialize the analyzer.

        Args:
            verbose: Enable verbose output
            ambient_globals: Global names to treat as platform globals
        """
        self.verbose = verbose
        self.ambient_globals = tuple(ambient_globals)
        self.findings: List[Finding] = []

    def reset(self) -> None:
        """Forget findings from previous runs."""
        self.findings = []

    def analyze_ast(self, parsed: Dict[str, Any]) -> List[Finding]:
        """
        Analyze a parser result for executeScript closure problems.

        HTML results are analyzed script by script; every script is its own
        compilation unit.

        Args:
            parsed: Result dictionary from JavaScriptParser

        Returns:
            Findings for this file
        """
        if self.verbose:
            print(f"Analyzing AST from {parsed.get('file', 'unknown')}")

        if parsed.get("file_type") == "html":
            file_findings = []
            for script in parsed.get("inline_scripts", []):
                file_findings.extend(self._analyze_program(script, parsed.get("file", "")))
        else:
            file_findings = self._analyze_program(parsed, parsed.get("file", ""))

        self.findings.extend(file_findings)
        return file_findings

    def _analyze_program(self, parsed: Dict[str, Any], filename: str) -> List[Finding]:
        program = parsed.get("ast")
        if not program:
            if self.verbose and parsed.get("parse_error"):
                print(f"Skipping {filename}: {parsed['parse_error']}")
            return []

        rule = ClosureCaptureRule(
            program,
            filename=filename,
            code=parsed.get("source", ""),
            ambient_globals=self.ambient_globals,
        )
        findings = rule.run(program)

        # Inline scripts report page positions; only their first line shares a
        # line with the opening tag
        line_offset = parsed.get("line_offset", 0)
        column_offset = parsed.get("column_offset", 0)
        for finding in findings:
            if finding.line == 1:
                finding.column += column_offset
            finding.line += line_offset
        return findings

    def get_finding_report(self) -> Dict[str, Any]:
        """
        Generate a summary of all findings.

        Returns:
            Dictionary containing finding statistics and details
        """
        return {
            "total_findings": len(self.findings),
            "by_severity": {
                "high": len([f for f in self.findings if f.severity == "high"]),
                "medium": len([f for f in self.findings if f.severity == "medium"]),
                "low": len([f for f in self.findings if f.severity == "low"]),
            },
            "by_type": self._group_by_type(),
            "findings": self.findings,
        }

    def _group_by_type(self) -> Dict[str, int]:
        type_counts = {}
        for finding in self.findings:
            type_counts[finding.finding_type] = type_counts.get(finding.finding_type, 0) + 1
        return type_counts
