"""
scriptclosure - closure detection for injected extension scripts

A static analysis tool that finds functions passed to
chrome.scripting.executeScript which read variables from the extension's
own scope, something that silently breaks once the function is serialized
into the page.
"""

__version__ = "0.1.0"

from .analysis import ExecuteScriptClosureAnalyzer, ClosureCaptureRule, Finding
from .detector import ExecuteScriptClosureDetector
from .parser import JavaScriptParser
from .config import Config, config

__all__ = [
    "ExecuteScriptClosureAnalyzer",
    "ClosureCaptureRule",
    "ExecuteScriptClosureDetector",
    "Finding",
    "JavaScriptParser",
    "Config",
    "config",
]
