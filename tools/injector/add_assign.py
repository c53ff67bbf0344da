#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Inject a stylesheet marker into directive calls:

  import * as $styles from './counter.module.css'
  directive('counter', fn, { assign: { $styles } })

Rules:
- Adds the marker import once, after the last import line (or at file start)
- Options argument present: marker goes into its `assign: { ... }` block,
  or a new `assign` clause is appended to the options object
- No options argument: `{ assign: { $styles } }` is appended to the call as
  its third argument (missing leading arguments are filled with `undefined`)
- Skips calls whose assign block already holds the marker (idempotent)
- Skips malformed calls (unbalanced brackets) and leaves them untouched
"""

from __future__ import annotations

import argparse
import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from tools.injector.scan import (
    DEFAULT_TOKEN,
    ArgumentSpan,
    find_top_level_assign,
    iter_assign_blocks,
    locate_all,
    match_bracket,
    parse_args,
)
from tools.injector.sibling_css import SOURCE_EXT_RE, find_sibling_css


logger = logging.getLogger("style_injector")

DEFAULT_MARKER = "$styles"

SKIP_MALFORMED = "malformed"
SKIP_ALREADY_MARKED = "already-marked"
SKIP_UNCHANGED = "unchanged"

IMPORT_LINE_RE = re.compile(r"^import\s+.*$", re.MULTILINE)


@dataclass(frozen=True)
class SkippedCall:
    offset: int
    reason: str


@dataclass
class InjectReport:
    source: str
    code: str
    injected: int = 0
    skipped: List[SkippedCall] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.code != self.source


def _token_re(marker: str) -> re.Pattern:
    return re.compile(r"(?<![\w$])" + re.escape(marker) + r"(?![\w$])")


def assign_clause(marker: str = DEFAULT_MARKER) -> str:
    return "assign: { " + marker + " }"


def import_statement(module_path: str, marker: str = DEFAULT_MARKER) -> str:
    return f"import * as {marker} from '{module_path}'"


# ---------------------------------------------------------------------------
# Import injection
# ---------------------------------------------------------------------------

def has_marker_import(src: str, module_path: str, marker: str = DEFAULT_MARKER) -> bool:
    """True if a line-initial import binds `marker` from exactly `module_path`."""
    pattern = (
        r"^[ \t]*import\s+[^;\n]*?"
        + _token_re(marker).pattern
        + r"[^;\n]*?\sfrom\s*(['\"])"
        + re.escape(module_path)
        + r"\1"
    )
    return re.search(pattern, src, re.MULTILINE) is not None


def _import_statement_end(src: str, m: re.Match) -> int:
    # a multi-line `import {\n a,\n b\n} from 'x'` ends on the line of its '}'
    brace = src.find("{", m.start(), m.end())
    if brace == -1:
        return m.end()
    close = match_bracket(src, brace, "{", "}")
    if close is None or close < m.end():
        return m.end()
    nl = src.find("\n", close)
    return len(src) if nl == -1 else nl


def ensure_import(src: str, module_path: str, marker: str = DEFAULT_MARKER) -> str:
    if has_marker_import(src, module_path, marker):
        return src

    stmt = import_statement(module_path, marker)
    matches = list(IMPORT_LINE_RE.finditer(src))
    if not matches:
        return stmt + "\n" + src

    end = _import_statement_end(src, matches[-1])
    return src[:end] + "\n" + stmt + src[end:]


# ---------------------------------------------------------------------------
# Options injection
# ---------------------------------------------------------------------------

def has_marker_in_assign(options_body: str, marker: str = DEFAULT_MARKER) -> bool:
    """Marker present as a standalone token inside an `assign: { ... }` block."""
    token = _token_re(marker)
    for brace_open, brace_close in iter_assign_blocks(options_body):
        if token.search(options_body, brace_open, brace_close + 1):
            return True
    return False


def _append_assign_clause(options_body: str, marker: str) -> str:
    closing = options_body.rfind("}")
    if closing <= 0:
        return options_body

    before = options_body[:closing].rstrip()
    needs_comma = len(before) > 1 and not before.endswith(",")
    return before + (", " if needs_comma else " ") + assign_clause(marker) + " " + options_body[closing:]


def inject_marker(options_body: str, marker: str = DEFAULT_MARKER) -> str:
    """
    Add `marker` to the options object literal `options_body` ('{' ... '}').

    - existing top-level `assign: { ... }`: marker appended to its entries
    - no top-level assign key (or its brace is unmatched): `assign: { marker }` appended
      before the object's closing brace
    """
    found = find_top_level_assign(options_body)
    if found is None or found[2] == -1:
        if found is not None:
            logger.debug("INJECT_ASSIGN_UNMATCHED: appending a new assign clause instead")
        return _append_assign_clause(options_body, marker)

    _, brace_open, brace_close = found
    inner = options_body[brace_open + 1:brace_close].strip()
    if not inner:
        new_inner = marker
    elif inner.endswith(","):
        new_inner = inner + marker
    else:
        new_inner = inner + ", " + marker

    return options_body[:brace_open + 1] + " " + new_inner + " " + options_body[brace_close:]


def extend_args(src: str, span: ArgumentSpan, marker: str = DEFAULT_MARKER) -> str:
    """
    Append `{ assign: { marker } }` as a new last argument of the call, padding
    with `undefined` so it lands no earlier than the third (options) position.
    """
    inside = src[span.paren_open + 1:span.paren_close].rstrip()
    if not inside.strip():
        count, sep = 0, ""
    elif inside.endswith(","):
        count, sep = span.comma_count, " "
    else:
        count, sep = span.comma_count + 1, ", "
    padding = "undefined, " * max(0, 2 - count)
    insertion = sep + padding + "{ " + assign_clause(marker) + " }"
    return src[:span.paren_close] + insertion + src[span.paren_close:]


def _last_arg_marked(src: str, span: ArgumentSpan, marker: str) -> bool:
    # an options object appended after a non-object third argument is the
    # call's last argument; earlier positions are not options
    if span.comma_count < 3:
        return False
    tail = src[span.last_arg_start:span.paren_close].strip()
    return tail.startswith("{") and has_marker_in_assign(tail, marker)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def add_assign_to_source(
    src: str,
    import_path: str,
    marker: str = DEFAULT_MARKER,
    token: str = DEFAULT_TOKEN,
) -> InjectReport:
    out = ensure_import(src, import_path, marker)
    report = InjectReport(source=src, code=out)

    # descending: each splice lies at/after its own call, earlier offsets stay valid
    for start in reversed(locate_all(out, token)):
        span = parse_args(out, start)
        if span is None:
            logger.debug("INJECT_SKIP: malformed call at offset %d", start)
            report.skipped.append(SkippedCall(start, SKIP_MALFORMED))
            continue

        if not span.has_options:
            if _last_arg_marked(out, span, marker):
                report.skipped.append(SkippedCall(start, SKIP_ALREADY_MARKED))
                continue
            out = extend_args(out, span, marker)
            report.injected += 1
            continue

        body = out[span.options_start:span.options_end + 1]
        if has_marker_in_assign(body, marker):
            report.skipped.append(SkippedCall(start, SKIP_ALREADY_MARKED))
            continue

        new_body = inject_marker(body, marker)
        if new_body == body:
            report.skipped.append(SkippedCall(start, SKIP_UNCHANGED))
            continue

        out = out[:span.options_start] + new_body + out[span.options_end + 1:]
        report.injected += 1

    report.code = out
    if report.changed:
        logger.debug(
            "INJECT_OK: import=%s injected=%d skipped=%d",
            import_path,
            report.injected,
            len(report.skipped),
        )
    return report


def transform(src: str, import_path: str, marker: str = DEFAULT_MARKER, token: str = DEFAULT_TOKEN) -> str:
    return add_assign_to_source(src, import_path, marker, token).code


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def iter_source_files(paths: List[str], recursive: bool) -> List[str]:
    out: List[str] = []

    for p in paths:
        if os.path.isdir(p):
            if not recursive:
                continue
            for root, dirs, files in os.walk(p):
                dirs[:] = [d for d in dirs if d != "node_modules"]
                for fn in files:
                    if SOURCE_EXT_RE.search(fn):
                        out.append(os.path.join(root, fn))
        else:
            if not os.path.exists(p):
                raise FileNotFoundError(f"Input path does not exist: {p}")
            if SOURCE_EXT_RE.search(p):
                out.append(p)

    return sorted(set(out))


def _resolve_import_path(fp: str, explicit: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit
    css = find_sibling_css(fp)
    return css.import_path if css else None


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Inject a stylesheet marker into directive(...) calls.")
    ap.add_argument("paths", nargs="+", help="Input file(s) or directory(ies).")
    ap.add_argument("--import-path", help="Module path to import the marker from (default: sibling stylesheet).")
    ap.add_argument("--marker", default=DEFAULT_MARKER, help="Marker symbol to inject.")
    ap.add_argument("--token", default=DEFAULT_TOKEN, help="Invocation token to look for.")
    ap.add_argument("-i", "--inplace", action="store_true", help="Modify files in-place.")
    ap.add_argument("-o", "--output", help="Write output to a single file (only valid with one input file).")
    ap.add_argument("--recursive", action="store_true", help="Recurse into directories.")
    ap.add_argument("--backup", action="store_true", help="When --inplace, create .bak backup files.")
    ap.add_argument("--dry-run", action="store_true", help="Do not write changes; just report what would change.")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")

    try:
        files = iter_source_files(args.paths, recursive=args.recursive)
    except FileNotFoundError as e:
        ap.error(str(e))

    if args.output and len(files) != 1:
        ap.error("--output requires exactly one input file")

    total_calls = 0
    changed_files = 0

    for fp in files:
        import_path = _resolve_import_path(fp, args.import_path)
        if import_path is None:
            logger.info("INJECT_SKIP: no sibling stylesheet for %s", fp)
            continue

        with open(fp, "r", encoding="utf-8", errors="replace") as f:
            src = f.read()

        if not locate_all(src, args.token):
            continue

        report = add_assign_to_source(src, import_path, args.marker, args.token)
        for skip in report.skipped:
            if skip.reason == SKIP_MALFORMED:
                logger.warning("INJECT_SKIP: %s: malformed call at offset %d", fp, skip.offset)
        if not report.changed:
            continue

        total_calls += report.injected
        changed_files += 1

        if args.dry_run:
            print(f"[DRY] {fp}: would inject into {report.injected} call(s)")
            continue

        if args.output:
            with open(args.output, "w", encoding="utf-8") as wf:
                wf.write(report.code)
            print(f"[OK] wrote {args.output}: injected into {report.injected} call(s)")
            return 0

        if args.inplace:
            if args.backup:
                with open(fp + ".bak", "w", encoding="utf-8") as bf:
                    bf.write(src)
            with open(fp, "w", encoding="utf-8") as wf:
                wf.write(report.code)
            print(f"[OK] {fp}: injected into {report.injected} call(s)")
        else:
            # default: print to stdout (safe when running on one file)
            print(report.code)
            return 0

    if args.dry_run or args.inplace:
        print(f"Done. Changed {changed_files} file(s), injected into {total_calls} call(s).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
