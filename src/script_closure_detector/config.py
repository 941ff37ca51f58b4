"""
Configuration module for managing environment variables and settings.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from .parser import SOURCE_TYPES


DEFAULT_EXCLUDE_DIRS = "node_modules,.git,dist,build"


def _split_names(value: str) -> List[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def _is_js_identifier(name: str) -> bool:
    return name.replace("$", "_").isidentifier()


class Config:
    """Configuration manager for analysis settings."""

    def __init__(self):
        """Initialize configuration and load environment variables."""
        env_path = Path(__file__).parent.parent.parent / ".env"
        load_dotenv(env_path)

        # Platform globals available in the page, declared without definitions
        self.ambient_globals: List[str] = _split_names(os.getenv("SCRIPT_CLOSURE_GLOBALS", ""))
        self.source_type: str = os.getenv("SCRIPT_CLOSURE_SOURCE_TYPE", "auto").strip().lower()
        self.exclude_dirs: List[str] = _split_names(
            os.getenv("SCRIPT_CLOSURE_EXCLUDE_DIRS", DEFAULT_EXCLUDE_DIRS)
        )

    def validate(self) -> dict:
        """
        Validate configured values.

        Returns:
            Dictionary with validation results
        """
        errors = []
        warnings = []

        if self.source_type not in SOURCE_TYPES:
            errors.append(
                f"SCRIPT_CLOSURE_SOURCE_TYPE must be one of {', '.join(SOURCE_TYPES)} "
                f"(got '{self.source_type}')"
            )

        for name in self.ambient_globals:
            if not _is_js_identifier(name):
                warnings.append(f"Ignoring invalid global name in SCRIPT_CLOSURE_GLOBALS: '{name}'")

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "warnings": warnings,
        }

    def get_ambient_globals(self) -> List[str]:
        """Get the valid configured ambient global names."""
        return [name for name in self.ambient_globals if _is_js_identifier(name)]


# Global config instance
config = Config()
