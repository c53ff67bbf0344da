#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Depth-tracked scanning over JS/TS source text.

Finds the structural pieces of a directive call without a grammar:
  directive('name', handler, { ...options... })

Limitations (accepted):
- No awareness of strings, template literals or comments. A bracket inside
  a string literal counts toward nesting depth.
- The options argument is assumed to be the THIRD argument and to start
  with '{' (call shape: name, handler, options?).
- Only the `assign` key of the options object itself is edited; an
  `assign` nested deeper (`data: { assign: {...} }`) is left alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple


OPENERS = "({["
CLOSERS = ")}]"

DEFAULT_TOKEN = "directive"

ASSIGN_KEY_RE = re.compile(r"(?<![\w$])assign\s*:\s*\{")


@dataclass(frozen=True)
class ArgumentSpan:
    paren_open: int
    paren_close: int
    has_options: bool
    options_start: int = -1  # -1 when absent
    options_end: int = -1
    last_arg_start: int = -1  # just after the last top-level comma (or the '(')
    comma_count: int = 0  # top-level commas


def match_bracket(text: str, open_index: int, openers: str = OPENERS, closers: str = CLOSERS) -> Optional[int]:
    """
    Index of the bracket closing the one at open_index, or None.

    Only depth is tracked: '(' can be closed by '}' as far as this is concerned.
    """
    depth = 0
    for i in range(open_index, len(text)):
        c = text[i]
        if c in openers:
            depth += 1
        elif c in closers:
            depth -= 1
            if depth == 0:
                return i
    return None


def call_pattern(token: str = DEFAULT_TOKEN) -> re.Pattern:
    # not the tail of a longer identifier ("mydirective(" is not a call)
    return re.compile(r"(?<![\w$])" + re.escape(token) + r"\s*\(")


def locate_all(text: str, token: str = DEFAULT_TOKEN) -> List[int]:
    """Start offsets of every `token(` call, in text order."""
    return [m.start() for m in call_pattern(token).finditer(text)]


def _skip_ws(text: str, i: int, stop: int) -> int:
    while i < stop and text[i].isspace():
        i += 1
    return i


def parse_args(text: str, start_index: int) -> Optional[ArgumentSpan]:
    """
    Argument-list span of the call starting at start_index.

    Returns None when the call is malformed: no '(' at/after start_index, or
    the nesting depth never returns to zero before end of text.
    """
    paren_open = text.find("(", start_index)
    if paren_open == -1:
        return None

    depth = 1
    comma_count = 0
    third_arg_start = -1
    last_arg_start = paren_open + 1
    i = paren_open + 1
    n = len(text)

    while i < n:
        c = text[i]
        if c in OPENERS:
            depth += 1
        elif c in CLOSERS:
            depth -= 1
            if depth == 0:
                break
        elif c == "," and depth == 1:
            comma_count += 1
            last_arg_start = i + 1
            if comma_count == 2:
                third_arg_start = i + 1
        i += 1

    if depth != 0:
        return None

    paren_close = i
    no_options = ArgumentSpan(
        paren_open, paren_close, False, last_arg_start=last_arg_start, comma_count=comma_count
    )

    if comma_count < 2:
        return no_options

    options_start = _skip_ws(text, third_arg_start, paren_close)
    if options_start >= paren_close or text[options_start] != "{":
        return no_options

    options_end = match_bracket(text, options_start)
    if options_end is None or options_end > paren_close:
        return no_options

    return ArgumentSpan(paren_open, paren_close, True, options_start, options_end, last_arg_start, comma_count)


def find_assign_block(body: str, start: int = 0) -> Optional[Tuple[int, int, int]]:
    """
    First `assign: {` key at/after start.

    Returns (key_start, brace_open, brace_close); brace_close is -1 when the
    brace has no structural match.
    """
    m = ASSIGN_KEY_RE.search(body, start)
    if not m:
        return None
    brace_open = m.end() - 1
    brace_close = match_bracket(body, brace_open)
    return m.start(), brace_open, -1 if brace_close is None else brace_close


def iter_assign_blocks(body: str) -> List[Tuple[int, int]]:
    """(brace_open, brace_close) of every structurally matched assign block."""
    blocks: List[Tuple[int, int]] = []
    pos = 0
    while True:
        found = find_assign_block(body, pos)
        if found is None:
            return blocks
        _, brace_open, brace_close = found
        if brace_close != -1:
            blocks.append((brace_open, brace_close))
        pos = brace_open + 1


def depth_at(text: str, index: int) -> int:
    """Nesting depth of text[index], counted from the start of text."""
    depth = 0
    for c in text[:index]:
        if c in OPENERS:
            depth += 1
        elif c in CLOSERS:
            depth -= 1
    return depth


def find_top_level_assign(body: str) -> Optional[Tuple[int, int, int]]:
    """
    Like find_assign_block, but only an `assign` key of the outer object
    literal `body` itself (depth 1); nested `x: { assign: {...} }` is skipped.
    """
    pos = 0
    while True:
        found = find_assign_block(body, pos)
        if found is None:
            return None
        key_start, brace_open, _ = found
        if depth_at(body, key_start) == 1:
            return found
        pos = brace_open + 1
