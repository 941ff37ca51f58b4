"""
JavaScript and HTML parser module.

Parses extension sources into ESTree dictionaries with esprima. HTML pages
are scanned with BeautifulSoup and each inline ``<script>`` is parsed as its
own program.
"""

import re
from pathlib import Path
from typing import Any, Dict, List

import esprima
from bs4 import BeautifulSoup


JS_SUFFIXES = frozenset({".js", ".jsx", ".mjs", ".cjs"})
HTML_SUFFIXES = frozenset({".html", ".htm"})
SOURCE_TYPES = ("auto", "module", "script")

SCRIPT_OPEN_TAG = re.compile(r"<script\b[^>]*>", re.IGNORECASE)
SCRIPT_CLOSE_TAG = re.compile(r"</script\s*>", re.IGNORECASE)

# <script type="..."> values that hold JavaScript
SCRIPT_MIME_TYPES = frozenset({
    "",
    "module",
    "text/javascript",
    "application/javascript",
    "text/ecmascript",
    "application/ecmascript",
})


class JavaScriptParser:
    """
    Parser for JavaScript files and the scripts embedded in HTML pages.
    """

    def __init__(self, verbose: bool = False, source_type: str = "auto"):
        """
        Initialize the parser.

        Args:
            verbose: Enable verbose output
            source_type: 'module', 'script', or 'auto' to try module first
                and fall back to script
        """
        if source_type not in SOURCE_TYPES:
            raise ValueError(f"Unknown source type: {source_type}")
        self.verbose = verbose
        self.source_type = source_type

    def parse_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Parse a JavaScript or HTML file.

        Args:
            file_path: Path to the file

        Returns:
            Dictionary containing the parsed AST and metadata

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if self.verbose:
            print(f"Parsing file: {file_path}")

        content = file_path.read_text(encoding="utf-8", errors="ignore")
        if file_path.suffix in HTML_SUFFIXES:
            return self.parse_html(content, str(file_path))
        return self.parse_code(content, str(file_path))

    def parse_html(self, content: str, filename: str = "<string>") -> Dict[str, Any]:
        """
        Extract and parse the inline scripts of an HTML page.

        Scripts loaded through ``src`` are separate files and are analyzed
        on their own.

        Args:
            content: HTML source
            filename: Name used in results

        Returns:
            Dictionary with ``script_tags``, one parse result per inline
            script in ``inline_scripts`` and the scripts that failed to parse
            in ``parse_errors``
        """
        result: Dict[str, Any] = {
            "file": filename,
            "file_type": "html",
            "ast": None,
            "script_tags": [],
            "inline_scripts": [],
            "parse_errors": [],
        }

        soup = BeautifulSoup(content, "lxml")
        cursor = 0
        for index, script in enumerate(soup.find_all("script")):
            script_type = (script.get("type") or "").strip().lower()
            script_content = str(script.string or "")

            # lxml does not record source lines, so find the tag in the raw page.
            # The body starts right after the opening tag whatever the parser
            # does to its text.
            line_offset = 0
            column_offset = 0
            line = getattr(script, "sourceline", None)
            opening = SCRIPT_OPEN_TAG.search(content, cursor)
            if opening:
                body_start = opening.end()
                line_offset = content.count("\n", 0, body_start)
                column_offset = body_start - (content.rfind("\n", 0, body_start) + 1)
                closing = SCRIPT_CLOSE_TAG.search(content, body_start)
                cursor = closing.end() if closing else body_start
                line = line or content.count("\n", 0, opening.start()) + 1

            result["script_tags"].append({
                "type": script_type or "text/javascript",
                "src": script.get("src"),
                "line": line,
            })

            if script.get("src") or script_type not in SCRIPT_MIME_TYPES:
                continue
            if not script_content.strip():
                continue

            parsed = self.parse_code(script_content, f"{filename}:script[{index}]")
            parsed["line_offset"] = line_offset
            parsed["column_offset"] = column_offset
            result["inline_scripts"].append(parsed)
            if parsed.get("parse_error"):
                result["parse_errors"].append(f"{parsed['file']}: {parsed['parse_error']}")

        return result

    def parse_code(self, code: str, filename: str = "<string>") -> Dict[str, Any]:
        """
        Parse JavaScript code from a string.

        Syntax errors do not raise; they are recorded under ``parse_error``
        and ``ast`` is left as None.

        Args:
            code: JavaScript source
            filename: Name used in results and messages

        Returns:
            Dictionary containing the parsed AST and metadata
        """
        if self.verbose:
            print(f"Parsing code from {filename}")

        result: Dict[str, Any] = {
            "file": filename,
            "file_type": "javascript",
            "ast": None,
            "source": code,
            "source_type": None,
        }

        errors: List[str] = []
        for source_type in self._candidate_source_types():
            try:
                ast_obj = self._parse(code, source_type)
            except Exception as e:  # esprima raises its own Error type
                errors.append(f"{source_type}: {e}")
                continue
            result["ast"] = self._to_dict(ast_obj)
            result["source_type"] = source_type
            return result

        result["parse_error"] = "; ".join(errors)
        if self.verbose:
            print(f"Warning: Could not parse JavaScript in {filename}: {result['parse_error']}")
        return result

    def _candidate_source_types(self) -> List[str]:
        if self.source_type == "auto":
            return ["module", "script"]
        return [self.source_type]

    def _parse(self, code: str, source_type: str) -> Any:
        options = {"loc": True, "range": True}
        if source_type == "module":
            return esprima.parseModule(code, options)
        return esprima.parseScript(code, options)

    def _to_dict(self, ast_obj: Any) -> Any:
        """Convert an esprima node tree into plain dictionaries."""
        if hasattr(ast_obj, "toDict"):
            return ast_obj.toDict()
        return self._esprima_to_dict(ast_obj)

    def _esprima_to_dict(self, obj: Any) -> Any:
        if isinstance(obj, (str, int, float, bool, type(None))):
            return obj
        if isinstance(obj, list):
            return [self._esprima_to_dict(item) for item in obj]
        if isinstance(obj, dict):
            return {key: self._esprima_to_dict(value) for key, value in obj.items()}
        if hasattr(obj, "__dict__"):
            return {
                key: self._esprima_to_dict(value)
                for key, value in obj.__dict__.items()
                if not key.startswith("_")
            }
        return obj


def is_supported_file(path: Path) -> bool:
    """True if ``path`` has a JavaScript or HTML suffix."""
    return path.suffix in JS_SUFFIXES or path.suffix in HTML_SUFFIXES
