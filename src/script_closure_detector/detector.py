"""
Main detector module that coordinates parsing and analysis.

This module provides the high-level API for the executeScript closure
detection tool.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .analysis import ExecuteScriptClosureAnalyzer
from .parser import JavaScriptParser, is_supported_file


class ExecuteScriptClosureDetector:
    """
    Main detector class for executeScript closure findings.

    Coordinates parsing and analysis of extension sources. Every file is a
    separate compilation unit; no state is shared between files.
    """

    def __init__(self, verbose: bool = False, ambient_globals: Iterable[str] = (),
                 source_type: str = "auto", exclude_dirs: Optional[Iterable[str]] = None):
        """
        Initialize the detector.

        Args:
            verbose: Enable verbose output
            ambient_globals: Global names allowed inside injected functions
            source_type: 'auto', 'module' or 'script'
            exclude_dirs: Directory names skipped when scanning directories
        """
        self.verbose = verbose
        self.parser = JavaScriptParser(verbose=verbose, source_type=source_type)
        self.analyzer = ExecuteScriptClosureAnalyzer(verbose=verbose, ambient_globals=ambient_globals)
        self.exclude_dirs = frozenset(exclude_dirs or ())

    def analyze(self, path: Path) -> Dict[str, Any]:
        """
        Analyze a file or directory.

        Args:
            path: Path to a JavaScript/HTML file or a directory

        Returns:
            Dictionary containing analysis results

        Raises:
            ValueError: If the path is invalid
        """
        if path.is_file():
            return self._analyze_file(path)
        elif path.is_dir():
            return self._analyze_directory(path)
        else:
            raise ValueError(f"Invalid path: {path}")

    def analyze_code(self, code: str, filename: str = "<string>") -> List[Dict[str, Any]]:
        """
        Analyze JavaScript source held in memory.

        Returns:
            List of finding dictionaries
        """
        parsed = self.parser.parse_code(code, filename)
        if parsed.get("parse_error"):
            raise ValueError(f"Could not parse {filename}: {parsed['parse_error']}")
        return [finding.to_dict() for finding in self.analyzer.analyze_ast(parsed)]

    def _analyze_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Analyze a single file.

        Args:
            file_path: Path to the file

        Returns:
            Dictionary containing analysis results
        """
        if self.verbose:
            print(f"Analyzing file: {file_path}")

        if not is_supported_file(file_path):
            if self.verbose:
                print(f"Skipping unsupported file: {file_path}")
            return {
                "file": str(file_path),
                "skipped": True,
                "reason": "Not a JavaScript or HTML file",
            }

        try:
            parsed = self.parser.parse_file(file_path)
            if parsed.get("parse_error"):
                return {
                    "file": str(file_path),
                    "error": f"Parse error: {parsed['parse_error']}",
                }

            findings = self.analyzer.analyze_ast(parsed)
            result = {
                "file": str(file_path),
                "findings": [finding.to_dict() for finding in findings],
                "finding_count": len(findings),
            }
            # Inline scripts that did not parse leave the rest of the page analyzable
            if parsed.get("parse_errors"):
                result["parse_errors"] = list(parsed["parse_errors"])
            return result

        except Exception as e:
            return {
                "file": str(file_path),
                "error": str(e),
            }

    def _iter_source_files(self, dir_path: Path) -> List[Path]:
        files = []
        for candidate in sorted(dir_path.rglob("*")):
            if not candidate.is_file() or not is_supported_file(candidate):
                continue
            relative_parts = candidate.relative_to(dir_path).parts[:-1]
            if any(part in self.exclude_dirs for part in relative_parts):
                continue
            files.append(candidate)
        return files

    def _analyze_directory(self, dir_path: Path) -> Dict[str, Any]:
        """
        Analyze all supported files in a directory recursively.

        Args:
            dir_path: Path to the directory

        Returns:
            Dictionary containing analysis results for all files
        """
        if self.verbose:
            print(f"Analyzing directory: {dir_path}")

        results = {
            "directory": str(dir_path),
            "files": [],
            "total_findings": 0,
        }

        for source_file in self._iter_source_files(dir_path):
            file_result = self._analyze_file(source_file)
            results["files"].append(file_result)
            results["total_findings"] += file_result.get("finding_count", 0)

        return results

    def print_results(self, results: Dict[str, Any]) -> None:
        """
        Print analysis results to stdout in a human-readable format.

        Args:
            results: Analysis results dictionary
        """
        if "directory" in results:
            print(f"\n=== Analysis Results for {results['directory']} ===\n")
            print(f"Files analyzed: {len(results['files'])}")
            print(f"Total findings: {results['total_findings']}\n")

            for file_result in results["files"]:
                self._print_single_file_result(file_result)
        else:
            self._print_single_file_result(results, header=True)

    def _print_single_file_result(self, result: Dict[str, Any], header: bool = False) -> None:
        """Helper to print result for a single file."""
        file_path = result.get("file", "Unknown")

        if header:
            print(f"\n=== Analysis Results for {file_path} ===\n")

        if result.get("skipped"):
            if header:
                print(f"Skipped: {result['reason']}")
            return

        if "error" in result:
            print(f"[-] {file_path}: Error - {result['error']}")
            return

        finding_count = result.get("finding_count", 0)
        parse_errors = result.get("parse_errors", [])
        if finding_count > 0:
            print(f"[!] {file_path}: {finding_count} finding(s)")
        elif parse_errors:
            print(f"[-] {file_path}: No findings in the scripts that could be parsed")
        else:
            print(f"[+] {file_path}: No findings detected")

        for error in parse_errors:
            print(f"   [WARNING] Parse error: {error}")

        for finding in result.get("findings", []):
            print(f"   [{finding['severity'].upper()}] Line {finding['line']}: {finding['message']}")
            if header and finding["code_snippet"]:
                print(f"     Code: {finding['code_snippet']}")

    def save_results(self, results: Dict[str, Any], output_path: Path) -> None:
        """
        Save analysis results to a JSON file.

        Args:
            results: Analysis results dictionary
            output_path: Path to save the results
        """
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2)

        if self.verbose:
            print(f"Results saved to {output_path}")
