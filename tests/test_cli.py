"""Command-line helpers and the config subcommand."""

import io
import json
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from conftest import make_artifact, make_graph

from storyforge.app.main import main, parse_args, read_descriptions, write_outputs
from storyforge.phases.pipeline import PipelineResult


class CliTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        root = logging.getLogger("storyforge")
        for handler in root.handlers:
            handler.close()
        root.handlers = []
        self._tmp.cleanup()

    def test_read_descriptions_splits_units(self) -> None:
        first = self.tmp / "a.txt"
        first.write_text(
            "As a user I want to log in\n---\n\nAs a user I want to log out\n---\n",
            encoding="utf-8",
        )
        second = self.tmp / "b.txt"
        second.write_text("As an admin I want to\nmanage users\n", encoding="utf-8")

        descriptions = read_descriptions([str(first), str(second)])

        self.assertEqual(descriptions, [
            "As a user I want to log in",
            "As a user I want to log out",
            "As an admin I want to\nmanage users",
        ])

    def test_run_arguments(self) -> None:
        args = parse_args(["run", "a.txt", "b.txt", "-r", "guide.md", "--stream"])

        self.assertEqual(args.command, "run")
        self.assertEqual(args.inputs, ["a.txt", "b.txt"])
        self.assertEqual(args.reference, ["guide.md"])
        self.assertEqual(args.image, [])
        self.assertTrue(args.stream)

    def test_write_outputs(self) -> None:
        result = PipelineResult(
            artifacts={"STORY-001": make_artifact()},
            graph=make_graph(),
            metadata={"passes_completed": 4},
        )

        write_outputs(result, self.tmp / "out")

        graph = json.loads((self.tmp / "out" / "graph.json").read_text(encoding="utf-8"))
        report = json.loads((self.tmp / "out" / "report.json").read_text(encoding="utf-8"))
        markdown = (self.tmp / "out" / "stories" / "STORY-001.md").read_text(encoding="utf-8")
        self.assertIn("COMP-LOGIN-FORM", graph["components"])
        self.assertEqual(report["metadata"]["passes_completed"], 4)
        self.assertTrue(markdown.startswith("# Log in"))
        self.assertTrue((self.tmp / "out" / "stories" / "STORY-001.json").exists())

    def test_config_init_writes_file(self) -> None:
        config_path = self.tmp / "cfg.json"
        out = io.StringIO()

        with mock.patch.dict(os.environ, {"STORYFORGE_DATA_DIR": str(self.tmp)}):
            with redirect_stdout(out):
                code = main(["--config", str(config_path), "config", "--init"])

        self.assertEqual(code, 0)
        self.assertTrue(config_path.exists())
        self.assertIn('"quality_gate"', out.getvalue())

    def test_missing_input_file_is_reported(self) -> None:
        err = io.StringIO()

        with mock.patch.dict(os.environ, {"STORYFORGE_DATA_DIR": str(self.tmp)}):
            with redirect_stdout(io.StringIO()), redirect_stderr(err):
                code = main(["run", str(self.tmp / "missing.txt")])

        self.assertEqual(code, 1)
        self.assertIn("Fatal error", err.getvalue())
        log_text = (self.tmp / "logs" / "storyforge.log").read_text(encoding="utf-8")
        self.assertIn("FAILED run: FileNotFoundError", log_text)

    def test_run_without_descriptions_fails(self) -> None:
        empty = self.tmp / "empty.txt"
        empty.write_text("---\n\n---\n", encoding="utf-8")

        with mock.patch.dict(os.environ, {"STORYFORGE_DATA_DIR": str(self.tmp)}):
            with redirect_stdout(io.StringIO()):
                code = main(["run", str(empty)])

        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
