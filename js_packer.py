#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Dean Edwards style JavaScript packer / unpacker.

pack() turns source text into a self-decoding bootstrap:

    eval(function(p,a,c,k,e,d){...}('<payload>',<a>,<count>,'<w0|w1|...>'.split('|'),0,{}))

unpack() parses that bootstrap back into source text without executing it.
Both are pure functions over whole strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Tuple

BASE62_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE36_DIGITS = BASE62_DIGITS[:36]
MAX_RADIX = len(BASE62_DIGITS)
DICT_SEPARATOR = "|"

PACKED_PREAMBLE = "eval(function(p,a,c,k,e,d){"
DECODER_BODY = (
    r"e=function(c){return(c<a?'':e(parseInt(c/a)))+((c=c%a)>35?String.fromCharCode(c+29):c.toString(36))};"
    r"if(!''.replace(/^/,String)){while(c--)d[e(c)]=k[c]||e(c);k=[function(e){return d[e]}];"
    r"e=function(){return'\\w+'};c=1};"
    r"while(c--)if(k[c])p=p.replace(new RegExp('\\b'+e(c)+'\\b','g'),k[c]);return p"
)

# Packing tokens include '$'; the runtime decoder scans JS \w (no '$').
TOKEN_RE = re.compile(r"[A-Za-z0-9_$]+")
SYMBOL_RE = re.compile(r"[A-Za-z0-9_]+")

_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT_RE = re.compile(r"//[^\r\n]*")
_WHITESPACE_RE = re.compile(r"\s+")
_OPERATOR_SPACE_RE = re.compile(r"\s*([{};,:()\[\]=+\-*/<>!&|?])\s*")
_SEMICOLON_BRACE_RE = re.compile(r";\}")

_PREAMBLE_RE = re.compile(r"eval\(function\(p,a,c,k,e,[dr]\)\{")
_QUOTED = r"'((?:[^'\\]|\\.)*)'"
# Tried in order; the first match wins.
_PARAM_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(
        r"eval\(function\(p,a,c,k,e,[dr]\)\{.*?\}\("
        + _QUOTED
        + r",(\d+),(\d+),"
        + _QUOTED
        + r"\.split\('\|'\),\d+,\{\}\)\)",
        re.DOTALL,
    ),
    re.compile(
        r"\}\s*\(\s*"
        + _QUOTED
        + r"\s*,\s*(\d+)\s*,\s*(\d+)\s*,\s*"
        + _QUOTED
        + r"\s*\.split\(\s*'\|'\s*\)",
        re.DOTALL,
    ),
)

_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f", "v": "\v"}
_ESCAPE_RE = re.compile("[\\\\'\n\r\u2028\u2029]")
_UNESCAPE_RE = re.compile(r"\\(?:(0)(?![0-9])|(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.))", re.DOTALL)


class PackerError(ValueError):
    pass


class EmptyInputError(PackerError):
    pass


class FormatError(PackerError):
    pass


@dataclass(frozen=True)
class PackedParams:
    payload: str
    radix: int
    count: int
    words: Tuple[str, ...]


def cleanup(source: str) -> str:
    """Strip comments and redundant whitespace.

    Lexical only: comment markers inside string literals are treated as comments.
    """
    text = _BLOCK_COMMENT_RE.sub("", source)
    text = _LINE_COMMENT_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    text = _OPERATOR_SPACE_RE.sub(r"\1", text)
    text = _SEMICOLON_BRACE_RE.sub("}", text)
    return text.strip()


def tokenize(text: str) -> List[str]:
    return TOKEN_RE.findall(text)


def build_dictionary(text: str) -> List[str]:
    """Distinct tokens ordered by descending count, first occurrence breaking ties."""
    counts: Dict[str, int] = {}
    for tok in tokenize(text):
        counts[tok] = counts.get(tok, 0) + 1
    # dict keeps first-seen order and sorted() is stable.
    return sorted(counts, key=lambda tok: -counts[tok])


def encode62(n: int) -> str:
    if n < 0:
        raise PackerError("negative symbol id is not supported")
    if n == 0:
        return "0"
    digits: List[str] = []
    while n > 0:
        n, rem = divmod(n, MAX_RADIX)
        digits.append(BASE62_DIGITS[rem])
    return "".join(reversed(digits))


def _radix_digit(d: int) -> str:
    if d < 36:
        return BASE36_DIGITS[d]
    return chr(d + 29)


def decode_symbol(n: int, radix: int) -> str:
    """Symbol text the bootstrap's e() produces for id n in base radix."""
    digits: List[str] = []
    while n >= radix:
        n, rem = divmod(n, radix)
        digits.append(_radix_digit(rem))
    digits.append(_radix_digit(n))
    return "".join(reversed(digits))


def escape_payload(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(0)], text)


def unescape_payload(text: str) -> str:
    def _repl(m: re.Match) -> str:
        if m.group(1):
            return "\0"
        esc = m.group(2)
        if len(esc) > 1:
            return chr(int(esc[1:], 16))
        return _UNESCAPES.get(esc, esc)

    return _UNESCAPE_RE.sub(_repl, text)


def pack(source: str, cleanup_source: bool = True) -> str:
    if not isinstance(source, str):
        raise PackerError("source must be str")
    if not source.strip():
        raise EmptyInputError("nothing to pack")

    text = cleanup(source) if cleanup_source else source
    words = build_dictionary(text)
    symbols = {word: encode62(i) for i, word in enumerate(words)}
    payload = TOKEN_RE.sub(lambda m: symbols[m.group(0)], text)

    count = len(words)
    radix = min(count, MAX_RADIX)
    return (
        PACKED_PREAMBLE
        + DECODER_BODY
        + "}('"
        + escape_payload(payload)
        + f"',{radix},{count},'"
        + DICT_SEPARATOR.join(words)
        + "'.split('|'),0,{}))"
    )


def is_packed(text: str) -> bool:
    return isinstance(text, str) and _PREAMBLE_RE.search(text) is not None


def parse_packed(packed: str) -> PackedParams:
    if not is_packed(packed):
        raise FormatError("not packed code")
    start = _PREAMBLE_RE.search(packed).start()
    for pattern in _PARAM_PATTERNS:
        m = pattern.search(packed, start)
        if m is not None:
            break
    else:
        raise FormatError("could not parse packed parameters")

    payload, radix_raw, count_raw, words_raw = m.groups()
    radix = int(radix_raw)
    count = int(count_raw)
    if (radix < 1 and count > 0) or (radix == 1 and count > 1):
        raise FormatError(f"invalid packed radix {radix} for {count} symbols")
    words = tuple(unescape_payload(words_raw).split(DICT_SEPARATOR))
    return PackedParams(payload=unescape_payload(payload), radix=radix, count=count, words=words)


def unpack(packed: str) -> str:
    params = parse_packed(packed)
    table: Dict[str, str] = {}
    # Same table the bootstrap builds: d[e(c)] = k[c] || e(c), c counting down.
    for c in range(params.count - 1, -1, -1):
        symbol = decode_symbol(c, params.radix)
        word = params.words[c] if c < len(params.words) else ""
        table[symbol] = word or symbol
    return SYMBOL_RE.sub(lambda m: table.get(m.group(0), m.group(0)), params.payload)
