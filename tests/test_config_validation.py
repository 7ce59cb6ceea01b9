"""
Unit tests for configuration loading and validation.
"""

import unittest
import json
import os
import sys
import tempfile
import shutil

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dynamic_resolution import (
    validate_config,
    load_config,
    ConfigValidationError,
    DEFAULT_CONFIG,
)
from skylight import SKYLIGHT_PATH


class TestConfigValidation(unittest.TestCase):
    """Tests for the validate_config function."""

    def test_valid_config_passes(self):
        """Test that a completely valid config passes without warnings."""
        config = {"library_path": "/tmp/SkyLight", "log_to_file": True, "debug": False}

        validated, warnings = validate_config(config)

        self.assertEqual(len(warnings), 0)
        self.assertEqual(validated, config)

    def test_empty_config_uses_defaults(self):
        validated, warnings = validate_config({})

        self.assertEqual(warnings, [])
        self.assertEqual(validated, DEFAULT_CONFIG)
        self.assertEqual(validated["library_path"], SKYLIGHT_PATH)

    def test_blank_library_path_uses_default(self):
        validated, warnings = validate_config({"library_path": "   "})

        self.assertEqual(validated["library_path"], SKYLIGHT_PATH)
        self.assertTrue(any("library_path" in w for w in warnings))

    def test_non_string_library_path_uses_default(self):
        validated, warnings = validate_config({"library_path": 42})

        self.assertEqual(validated["library_path"], SKYLIGHT_PATH)
        self.assertEqual(len(warnings), 1)

    def test_library_path_is_stripped(self):
        validated, _ = validate_config({"library_path": "  /opt/SkyLight \n"})

        self.assertEqual(validated["library_path"], "/opt/SkyLight")

    def test_relative_library_path_uses_default(self):
        """Test that only an absolute framework path is accepted."""
        for path in ("SkyLight", "./SkyLight", "Frameworks/SkyLight.framework/SkyLight"):
            validated, warnings = validate_config({"library_path": path})

            self.assertEqual(validated["library_path"], SKYLIGHT_PATH)
            self.assertTrue(any("must be absolute" in w for w in warnings))

    def test_non_boolean_flags_use_defaults(self):
        """Test that truthy strings are not accepted as booleans."""
        validated, warnings = validate_config({"log_to_file": "yes", "debug": 1})

        self.assertFalse(validated["log_to_file"])
        self.assertFalse(validated["debug"])
        self.assertTrue(any("log_to_file should be true or false" in w for w in warnings))
        self.assertTrue(any("debug should be true or false" in w for w in warnings))

    def test_unknown_keys_warned(self):
        validated, warnings = validate_config({"max_displays": 16})

        self.assertNotIn("max_displays", validated)
        self.assertTrue(any("max_displays" in w for w in warnings))

    def test_non_object_config_raises(self):
        with self.assertRaises(ConfigValidationError):
            validate_config(["library_path"])


class TestLoadConfig(unittest.TestCase):
    """Tests for reading config.json from disk."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config_file = os.path.join(self.test_dir, 'config.json')

    def tearDown(self):
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)

    def write(self, data):
        mode = 'wb' if isinstance(data, bytes) else 'w'
        with open(self.config_file, mode) as f:
            f.write(data)

    def test_missing_file_uses_defaults(self):
        self.assertEqual(load_config(self.config_file), DEFAULT_CONFIG)

    def test_valid_file_is_loaded(self):
        self.write(json.dumps({"debug": True}))

        config = load_config(self.config_file)

        self.assertTrue(config["debug"])

    def test_malformed_json_logs_error_and_uses_defaults(self):
        self.write("{not json")

        with self.assertLogs('DynamicResolution', level='ERROR') as cm:
            config = load_config(self.config_file)

        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertTrue(cm.output[0].startswith("ERROR:"))
        self.assertIn("Malformed JSON", cm.output[0])

    def test_invalid_utf8_uses_defaults(self):
        """Test that undecodable bytes fall back to defaults instead of raising."""
        self.write(b'{"debug": "\xff\xfe"}')

        with self.assertLogs('DynamicResolution', level='ERROR') as cm:
            config = load_config(self.config_file)

        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertIn("Malformed JSON", cm.output[0])

    def test_non_object_json_logs_error_and_uses_defaults(self):
        self.write("[1, 2, 3]")

        with self.assertLogs('DynamicResolution', level='ERROR') as cm:
            config = load_config(self.config_file)

        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertIn("should be an object", cm.output[0])

    def test_repaired_values_log_warnings(self):
        self.write(json.dumps({"library_path": "SkyLight", "debug": True}))

        with self.assertLogs('DynamicResolution', level='WARNING') as cm:
            config = load_config(self.config_file)

        self.assertEqual(config["library_path"], SKYLIGHT_PATH)
        self.assertTrue(config["debug"])
        self.assertTrue(all(line.startswith("WARNING:") for line in cm.output))
        self.assertIn("Config validation", cm.output[0])

    def test_file_is_not_rewritten(self):
        """Test that repairing bad values leaves the file untouched."""
        original = json.dumps({"debug": "maybe"})
        self.write(original)

        with self.assertLogs('DynamicResolution', level='WARNING'):
            load_config(self.config_file)

        with open(self.config_file, 'r', encoding='utf-8') as f:
            self.assertEqual(f.read(), original)


if __name__ == '__main__':
    unittest.main()
