"""
Tests for the CLI module.
"""

import unittest
from pathlib import Path
from unittest.mock import patch
import tempfile
import json
import io

from script_closure_detector.cli import main


CAPTURING_SCRIPT = """
const TOP = 'outer';
chrome.scripting.executeScript({ target: { tabId: 1 }, func: () => TOP });
"""


class TestCLI(unittest.TestCase):
    """Test cases for the command-line interface."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.script = Path(self.temp_dir.name) / 'background.js'
        self.script.write_text(CAPTURING_SCRIPT)

    def tearDown(self):
        """Clean up test fixtures."""
        self.temp_dir.cleanup()

    def test_version_argument(self):
        """Test that --version flag works."""
        with self.assertRaises(SystemExit) as cm:
            with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
                main(['--version'])
        self.assertEqual(cm.exception.code, 0)
        self.assertIn('scriptclosure', mock_stdout.getvalue())

    def test_help_argument(self):
        """Test that --help flag works."""
        with self.assertRaises(SystemExit) as cm:
            with patch('sys.stdout', new_callable=io.StringIO):
                main(['--help'])
        self.assertEqual(cm.exception.code, 0)

    def test_no_command(self):
        """Test running without a command prints help and fails."""
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            exit_code = main([])
        self.assertEqual(exit_code, 1)
        self.assertIn('analyze', mock_stdout.getvalue())

    def test_nonexistent_path(self):
        """Test error handling for non-existent paths."""
        with patch('sys.stderr', new_callable=io.StringIO) as mock_stderr:
            exit_code = main(['analyze', '/nonexistent/path/to/file.js'])
            self.assertEqual(exit_code, 1)
            self.assertIn("does not exist", mock_stderr.getvalue())

    def test_valid_file_path(self):
        """Test analysis of a valid file path."""
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            exit_code = main(['analyze', str(self.script)])
        self.assertEqual(exit_code, 0)
        output = mock_stdout.getvalue()
        self.assertIn('1 finding(s)', output)
        self.assertIn('captures outer variable `TOP`', output)

    def test_directory_path(self):
        """Test analysis of a directory."""
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            exit_code = main(['analyze', self.temp_dir.name])
        self.assertEqual(exit_code, 0)
        self.assertIn('Files analyzed: 1', mock_stdout.getvalue())

    def test_output_file(self):
        """Test results are written to the requested JSON file."""
        output_path = Path(self.temp_dir.name) / 'results.json'
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            exit_code = main(['analyze', str(self.script), '-o', str(output_path)])
        self.assertEqual(exit_code, 0)
        self.assertIn('Results saved to', mock_stdout.getvalue())

        results = json.loads(output_path.read_text())
        self.assertEqual(results['finding_count'], 1)
        self.assertEqual(results['findings'][0]['type'], 'closureCapture')

    def test_verbose_flag(self):
        """Test that verbose flag is properly passed."""
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            exit_code = main(['analyze', str(self.script), '-v'])
        self.assertEqual(exit_code, 0)
        self.assertIn('Analyzing file:', mock_stdout.getvalue())

    def test_global_and_source_type_options(self):
        """Test --global and --source-type are accepted."""
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            exit_code = main([
                'analyze', str(self.script),
                '--global', 'window', '-g', 'document',
                '--source-type', 'script',
            ])
        self.assertEqual(exit_code, 0)
        self.assertIn('1 finding(s)', mock_stdout.getvalue())

    def test_invalid_configured_source_type(self):
        """Test an invalid source type from the environment is an error."""
        with patch('script_closure_detector.cli.config.source_type', 'commonjs'):
            with patch('sys.stderr', new_callable=io.StringIO) as mock_stderr:
                exit_code = main(['analyze', str(self.script)])
        self.assertEqual(exit_code, 1)
        self.assertIn('SCRIPT_CLOSURE_SOURCE_TYPE', mock_stderr.getvalue())

    def test_invalid_source_type_option(self):
        """Test argparse rejects unknown --source-type values."""
        with self.assertRaises(SystemExit) as cm:
            with patch('sys.stderr', new_callable=io.StringIO):
                main(['analyze', str(self.script), '--source-type', 'commonjs'])
        self.assertEqual(cm.exception.code, 2)


if __name__ == '__main__':
    unittest.main()
