#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass

import zstandard as zstd

from js_packer import EmptyInputError

ZSTD_LEVEL = 10
MINIFY_TYPES = ("html", "css", "js")

_HTML_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_HTML_BETWEEN_TAGS_RE = re.compile(r">\s+<")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")

_CSS_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_CSS_PUNCT_RE = re.compile(r"\s*([{};:,])\s*")
_CSS_LAST_SEMICOLON_RE = re.compile(r";\}")

_JS_LINE_COMMENT_RE = re.compile(r"(?<!:)//.*$", re.MULTILINE)
_JS_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_JS_OPERATOR_RE = re.compile(r"\s*([{};,=+\-*/<>!&|?:])\s*")


class ToolInputError(ValueError):
    pass


@dataclass(frozen=True)
class SizeReport:
    before: int
    after: int
    before_zstd: int
    after_zstd: int

    @property
    def ratio(self) -> float:
        if self.before <= 0:
            return 0.0
        return self.after / self.before


def _require_text(text: str, what: str) -> str:
    if not isinstance(text, str):
        raise ToolInputError(f"{what} must be str")
    if not text.strip():
        raise EmptyInputError(f"no {what} given")
    return text


def minify_html(text: str) -> str:
    text = _HTML_COMMENT_RE.sub("", text)
    text = _HTML_BETWEEN_TAGS_RE.sub("><", text)
    return _MULTI_SPACE_RE.sub(" ", text.strip())


def minify_css(text: str) -> str:
    text = _CSS_COMMENT_RE.sub("", text)
    text = _CSS_PUNCT_RE.sub(r"\1", text)
    text = _CSS_LAST_SEMICOLON_RE.sub("}", text)
    return _MULTI_SPACE_RE.sub(" ", text).strip()


def minify_js(text: str) -> str:
    """Comment and whitespace stripping only; `//` right after `:` is kept (URLs)."""
    text = _JS_LINE_COMMENT_RE.sub("", text)
    text = _JS_BLOCK_COMMENT_RE.sub("", text)
    lines = [line.strip() for line in text.split("\n")]
    text = "".join(line for line in lines if line)
    text = _MULTI_SPACE_RE.sub(" ", text)
    return _JS_OPERATOR_RE.sub(r"\1", text).strip()


def minify(text: str, kind: str) -> str:
    _require_text(text, "code")
    if kind == "html":
        return minify_html(text)
    if kind == "css":
        return minify_css(text)
    if kind == "js":
        return minify_js(text)
    raise ToolInputError(f"unsupported code type: {kind}")


def base64_encode(text: str) -> str:
    _require_text(text, "text")
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def base64_decode(text: str) -> str:
    _require_text(text, "Base64 string")
    try:
        raw = base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError) as ex:
        raise ToolInputError(f"invalid Base64: {ex}") from ex
    try:
        return raw.decode("utf-8", errors="strict")
    except UnicodeDecodeError as ex:
        raise ToolInputError("Base64 payload is not UTF-8 text") from ex


def _reject_constant(name: str) -> object:
    raise ToolInputError(f"invalid JSON: {name} is not allowed")


def _load_json(text: str) -> object:
    _require_text(text, "JSON")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as ex:
        raise ToolInputError(f"invalid JSON: {ex}") from ex


def json_format(text: str, indent: int = 2) -> str:
    return json.dumps(_load_json(text), indent=indent, ensure_ascii=False)


def json_minify(text: str) -> str:
    return json.dumps(_load_json(text), separators=(",", ":"), ensure_ascii=False)


def utf8_size(text: str) -> int:
    return len(text.encode("utf-8"))


def zstd_size(text: str, level: int = ZSTD_LEVEL) -> int:
    cctx = zstd.ZstdCompressor(level=level)
    return len(cctx.compress(text.encode("utf-8")))


def format_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.2f} KB"
    return f"{n / (1024 * 1024):.2f} MB"


def size_report(before: str, after: str, level: int = ZSTD_LEVEL) -> SizeReport:
    return SizeReport(
        before=utf8_size(before),
        after=utf8_size(after),
        before_zstd=zstd_size(before, level=level),
        after_zstd=zstd_size(after, level=level),
    )
