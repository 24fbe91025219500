from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from content_events.config import config_sha256, load_config, resolve_environment
from content_events.config_schema import DEFAULT_INPUT_PATH, PipelineConfig
from content_events.errors import ConfigError


_VALID_YAML = """\
input_path: data/events.json
debug: false
unknown_event_policy: reject
chunk_size: 4096
"""


class TestConfig(unittest.TestCase):
    def test_load_config_ok(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "config.yaml"
            path.write_text(_VALID_YAML, encoding="utf-8")

            cfg = load_config(path)
            self.assertEqual(cfg.input_path, "data/events.json")
            self.assertEqual(cfg.chunk_size, 4096)
            self.assertFalse(cfg.aborts_on_unknown_event)

    def test_empty_config_uses_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "config.yaml"
            path.write_text("", encoding="utf-8")

            cfg = load_config(path)
            self.assertEqual(cfg, PipelineConfig())
            self.assertEqual(cfg.input_path, DEFAULT_INPUT_PATH)

    def test_load_config_rejects_bad_values(self) -> None:
        for bad in (
            _VALID_YAML.replace("reject", "explode"),
            _VALID_YAML.replace("4096", "0"),
            _VALID_YAML + "unknown_key: 1\n",
            "- just\n- a list\n",
            "input_path: [unclosed\n",
        ):
            with tempfile.TemporaryDirectory() as td:
                path = Path(td) / "config.yaml"
                path.write_text(bad, encoding="utf-8")

                with self.assertRaises(ConfigError, msg=bad):
                    load_config(path)

    def test_missing_config_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError):
                load_config(Path(td) / "nope.yaml")

    def test_resolve_environment(self) -> None:
        base = PipelineConfig(input_path="from-config.json")

        self.assertEqual(resolve_environment(base, environ={}), base)

        cfg = resolve_environment(
            base, environ={"INPUT_PATH": "/tmp/in.json", "DEBUG": "TRUE"}
        )
        self.assertEqual(cfg.input_path, "/tmp/in.json")
        self.assertTrue(cfg.debug)

        cfg = resolve_environment(
            PipelineConfig(debug=True), environ={"INPUT_PATH": "  ", "DEBUG": "1"}
        )
        self.assertEqual(cfg.input_path, DEFAULT_INPUT_PATH)
        self.assertFalse(cfg.debug)

    def test_config_sha256_is_stable(self) -> None:
        a = PipelineConfig(input_path="x.json")
        b = PipelineConfig(input_path="x.json")
        self.assertEqual(config_sha256(a), config_sha256(b))
        self.assertNotEqual(config_sha256(a), config_sha256(PipelineConfig()))


if __name__ == "__main__":
    unittest.main()
