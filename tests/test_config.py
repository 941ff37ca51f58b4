"""
Tests for the configuration module.
"""

import os
import unittest
from unittest.mock import patch

from script_closure_detector.config import Config


class TestConfig(unittest.TestCase):
    """Test cases for environment-driven configuration."""

    def test_defaults(self):
        """Test defaults when nothing is configured."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()
        self.assertEqual(config.ambient_globals, [])
        self.assertEqual(config.source_type, "auto")
        self.assertEqual(config.exclude_dirs, ["node_modules", ".git", "dist", "build"])
        self.assertTrue(config.validate()["valid"])

    def test_environment_values(self):
        """Test values are read from the environment."""
        env = {
            "SCRIPT_CLOSURE_GLOBALS": " window, document ,,$ ",
            "SCRIPT_CLOSURE_SOURCE_TYPE": "Script",
            "SCRIPT_CLOSURE_EXCLUDE_DIRS": "vendor",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config()
        self.assertEqual(config.ambient_globals, ["window", "document", "$"])
        self.assertEqual(config.source_type, "script")
        self.assertEqual(config.exclude_dirs, ["vendor"])
        self.assertEqual(config.get_ambient_globals(), ["window", "document", "$"])

    def test_invalid_source_type(self):
        """Test an unknown source type fails validation."""
        with patch.dict(os.environ, {"SCRIPT_CLOSURE_SOURCE_TYPE": "commonjs"}, clear=True):
            validation = Config().validate()
        self.assertFalse(validation["valid"])
        self.assertEqual(len(validation["errors"]), 1)
        self.assertIn("commonjs", validation["errors"][0])

    def test_invalid_global_names(self):
        """Test invalid global names are warned about and ignored."""
        with patch.dict(os.environ, {"SCRIPT_CLOSURE_GLOBALS": "window,not-a-name,1st"}, clear=True):
            config = Config()
        validation = config.validate()
        self.assertTrue(validation["valid"])
        self.assertEqual(len(validation["warnings"]), 2)
        self.assertEqual(config.get_ambient_globals(), ["window"])


if __name__ == '__main__':
    unittest.main()
