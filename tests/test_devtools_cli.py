#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

import devTools
from js_packer import cleanup, is_packed, unpack

JS = "function add(a, b) {\n  // sum\n  return a + b;\n}\nadd(1, 2);\n"


def _run(argv, stdin: str = ""):
    stdout = io.StringIO()
    stderr = io.StringIO()
    with mock.patch("sys.stdin", io.StringIO(stdin)), redirect_stdout(stdout), redirect_stderr(stderr):
        code = devTools.main(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class DevToolsCliTests(unittest.TestCase):
    def test_pack_unpack_via_files(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "in.js"
            packed = Path(td) / "out.js"
            restored = Path(td) / "restored.js"
            src.write_text(JS, encoding="utf-8")

            code, _out, _err = _run(["pack", "-i", str(src), "-o", str(packed), "--quiet"])
            self.assertEqual(code, 0)
            self.assertTrue(is_packed(packed.read_text(encoding="utf-8")))

            code, _out, _err = _run(["unpack", "-i", str(packed), "-o", str(restored), "--quiet"])
            self.assertEqual(code, 0)
            self.assertEqual(restored.read_text(encoding="utf-8"), cleanup(JS))

    def test_pack_stdin_no_cleanup(self) -> None:
        code, out, _err = _run(["pack", "--no-cleanup"], stdin=JS)
        self.assertEqual(code, 0)
        self.assertEqual(unpack(out.rstrip("\n")), JS)

    def test_pack_empty_input(self) -> None:
        code, out, err = _run(["pack"], stdin="   \n")
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertIn("ERROR", err)

    def test_unpack_rejects_plain_code(self) -> None:
        code, _out, err = _run(["unpack"], stdin="var a = 1;")
        self.assertEqual(code, 2)
        self.assertIn("not packed code", err)

    def test_stats_line(self) -> None:
        code, _out, err = _run(["pack", "--stats"], stdin=JS * 20)
        self.assertEqual(code, 0)
        self.assertIn("size:", err)
        self.assertIn("zstd:", err)

    def test_base64_and_json(self) -> None:
        code, out, _err = _run(["base64", "encode"], stdin="hello")
        self.assertEqual((code, out), (0, "aGVsbG8=\n"))
        code, out, _err = _run(["base64", "decode"], stdin="aGVsbG8=\n")
        self.assertEqual((code, out), (0, "hello\n"))
        code, out, _err = _run(["json", "minify"], stdin='{"a": [1, 2]}')
        self.assertEqual((code, out), (0, '{"a":[1,2]}\n'))
        code, _out, err = _run(["json", "format"], stdin="{nope")
        self.assertEqual(code, 2)
        self.assertIn("invalid JSON", err)

    def test_minify_type(self) -> None:
        code, out, _err = _run(["minify", "--type", "css"], stdin="a { color : red ; }")
        self.assertEqual((code, out), (0, "a{color:red}\n"))

    def test_config_file_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "config.json"
            cfg.write_text(json.dumps({"indent": 4, "cleanup": False}), encoding="utf-8")

            code, out, _err = _run(["json", "format", "--config", str(cfg)], stdin='{"a":1}')
            self.assertEqual((code, out), (0, '{\n    "a": 1\n}\n'))

            code, out, _err = _run(["json", "format", "--config", str(cfg), "--indent", "1"], stdin='{"a":1}')
            self.assertEqual(out, '{\n "a": 1\n}\n')

            code, out, _err = _run(["pack", "--config", str(cfg)], stdin=JS)
            self.assertEqual(unpack(out.rstrip("\n")), JS)

    def test_broken_config_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "config.json"
            cfg.write_text("{broken", encoding="utf-8")
            code, out, err = _run(["json", "minify", "--config", str(cfg)], stdin="[1, 2]")
            self.assertEqual((code, out), (0, "[1,2]\n"))
            self.assertIn("WARN", err)

    def test_config_values_of_wrong_type_are_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "config.json"
            cfg.write_text(json.dumps({"zstd_level": "high", "cleanup": "false"}), encoding="utf-8")

            code, out, err = _run(["pack", "--stats", "--config", str(cfg)], stdin=JS)
            self.assertEqual(code, 0)
            self.assertIn("'zstd_level'", err)
            self.assertIn("'cleanup'", err)
            self.assertIn("size:", err)
            self.assertEqual(unpack(out.rstrip("\n")), cleanup(JS))

    def test_non_utf8_input_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "in.js"
            src.write_bytes(b"var x = '\xff\xfe';")
            code, out, err = _run(["pack", "-i", str(src)])
            self.assertEqual(code, 2)
            self.assertEqual(out, "")
            self.assertIn("cannot read input", err)

    def test_missing_input_file(self) -> None:
        code, _out, err = _run(["pack", "-i", "/nonexistent/in.js"])
        self.assertEqual(code, 2)
        self.assertIn("cannot read input", err)


if __name__ == "__main__":
    unittest.main()
