from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


class TestCLISmoke(unittest.TestCase):
    def test_summarize_module_entrypoint(self) -> None:
        repo_root = Path(__file__).resolve().parents[1]

        with tempfile.TemporaryDirectory() as td:
            input_path = Path(td) / "data.json"
            input_path.write_text(
                '[{"event":"Started Content Piece","properties":{"id":"p1","time":100,"$user_id":"u@v.com"}},'
                ' {"event":"Bogus","properties":{"id":"p2","time":200,"distinct_id":"w@v.com"}}]',
                encoding="utf-8",
            )

            env = dict(os.environ)
            env.pop("DEBUG", None)
            env["INPUT_PATH"] = str(input_path)

            existing_pp = env.get("PYTHONPATH", "")
            env["PYTHONPATH"] = (
                f"{repo_root}{os.pathsep}{existing_pp}" if existing_pp else str(repo_root)
            )

            proc = subprocess.run(
                [sys.executable, "-m", "content_events", "summarize"],
                cwd=repo_root,
                env=env,
                capture_output=True,
                text=True,
            )

            self.assertEqual(proc.returncode, 0, msg=proc.stderr)
            self.assertIn("records=2", proc.stdout)
            self.assertIn("emitted=1", proc.stdout)
            self.assertIn("deserialization error: record 1:", proc.stderr)


if __name__ == "__main__":
    unittest.main()
