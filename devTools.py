#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
devTools.py: text utilities for web developers.

Commands:
  pack      Dean Edwards style JS packer (eval(function(p,a,c,k,e,d){...}))
  unpack    recover source from packed JS
  minify    strip comments/whitespace from HTML, CSS or JS
  base64    encode/decode UTF-8 text
  json      format/minify JSON

Input is read from --input (default stdin), output goes to --output
(default stdout). Options not given on the command line fall back to the
JSON file passed with --config, then to DEFAULTS.
"""

from __future__ import annotations

import argparse
import datetime as _dt
import json
import os
import sys
from typing import Dict, List, Optional

from devtools_utils import (
    MINIFY_TYPES,
    base64_decode,
    base64_encode,
    format_bytes,
    json_format,
    json_minify,
    minify,
    size_report,
)
from js_packer import EmptyInputError, FormatError, pack, unpack

VERSION = "1.0.0"

DEFAULTS: Dict[str, object] = {
    "cleanup": True,
    "indent": 2,
    "stats": False,
    "quiet": False,
    "zstd_level": 10,
}


def ts_now() -> str:
    return _dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def out(msg: str) -> None:
    sys.stdout.write(msg + "\n")
    sys.stdout.flush()


def err(msg: str) -> None:
    sys.stderr.write(f"{ts_now()} {msg}\n")
    sys.stderr.flush()


def load_config(path: Optional[str]) -> Dict[str, object]:
    if not path or not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            cfg = json.load(f)
        except ValueError as ex:
            err(f"WARN: ignoring config {path}: {ex}")
            return {}
    if not isinstance(cfg, dict):
        err(f"WARN: ignoring config {path}: top level must be an object")
        return {}
    return cfg


def resolve_settings(args: argparse.Namespace) -> Dict[str, object]:
    settings = dict(DEFAULTS)
    for key, value in load_config(args.config).items():
        if key not in DEFAULTS:
            err(f"WARN: unknown config key {key!r}")
        elif type(value) is not type(DEFAULTS[key]):
            err(f"WARN: ignoring config key {key!r}: expected {type(DEFAULTS[key]).__name__}, got {value!r}")
        else:
            settings[key] = value
    if getattr(args, "no_cleanup", False):
        settings["cleanup"] = False
    if getattr(args, "indent", None) is not None:
        settings["indent"] = args.indent
    if args.stats:
        settings["stats"] = True
    if args.quiet:
        settings["quiet"] = True
    return settings


def read_input(path: Optional[str]) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def write_output(path: Optional[str], text: str) -> None:
    if not path or path == "-":
        out(text)
        return
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def run_command(args: argparse.Namespace, text: str, settings: Dict[str, object]) -> str:
    if args.command == "pack":
        return pack(text, cleanup_source=bool(settings["cleanup"]))
    if args.command == "unpack":
        if not text.strip():
            raise EmptyInputError("no packed code given")
        return unpack(text)
    if args.command == "minify":
        return minify(text, args.type)
    if args.command == "base64":
        return base64_encode(text) if args.action == "encode" else base64_decode(text)
    if args.command == "json":
        if args.action == "format":
            return json_format(text, indent=int(settings["indent"]))
        return json_minify(text)
    raise ValueError(f"unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-i", "--input", default=None, help="input file (default: stdin).")
    common.add_argument("-o", "--output", default=None, help="output file (default: stdout).")
    common.add_argument("--stats", action="store_true", help="print size before/after (raw and zstd) to stderr.")
    common.add_argument("--quiet", action="store_true", help="no status lines on stderr.")
    common.add_argument("--config", default=None, help="JSON file with defaults (keys: %s)." % ", ".join(sorted(DEFAULTS)))

    ap = argparse.ArgumentParser(
        prog="devTools.py",
        description="Developer text utilities: JS packer/unpacker, minifier, Base64, JSON.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("pack", parents=[common], help="pack JavaScript into a self-decoding eval() bootstrap.")
    p.add_argument("--no-cleanup", dest="no_cleanup", action="store_true", help="keep comments and whitespace (exact round-trip).")

    sub.add_parser("unpack", parents=[common], help="unpack Dean Edwards packed JavaScript.")

    p = sub.add_parser("minify", parents=[common], help="minify HTML, CSS or JS.")
    p.add_argument("--type", choices=MINIFY_TYPES, default="js", help="code type (default: js).")

    p = sub.add_parser("base64", parents=[common], help="Base64 encode/decode UTF-8 text.")
    p.add_argument("action", choices=["encode", "decode"])

    p = sub.add_parser("json", parents=[common], help="format or minify JSON.")
    p.add_argument("action", choices=["format", "minify"])
    p.add_argument("--indent", type=int, default=None, help=f"indent for format (default: {DEFAULTS['indent']}).")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)

    try:
        text = read_input(args.input)
    except (OSError, UnicodeDecodeError) as ex:
        err(f"ERROR: cannot read input: {ex}")
        return 2

    try:
        result = run_command(args, text, settings)
    except EmptyInputError as ex:
        err(f"ERROR: {ex}")
        return 2
    except FormatError as ex:
        err(f"ERROR: {ex} (expected eval(function(p,a,c,k,e,d){{...}}) code)")
        return 2
    except ValueError as ex:
        err(f"ERROR: {ex}")
        return 2

    try:
        write_output(args.output, result)
    except OSError as ex:
        err(f"ERROR: cannot write output: {ex}")
        return 2

    if settings["stats"]:
        rep = size_report(text, result, level=int(settings["zstd_level"]))
        err(
            f"size: {format_bytes(rep.before)} -> {format_bytes(rep.after)} ({rep.ratio:.1%}), "
            f"zstd: {format_bytes(rep.before_zstd)} -> {format_bytes(rep.after_zstd)}"
        )
    elif not settings["quiet"] and args.output:
        err(f"{args.command}: wrote {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
