#!/usr/bin/env python3
"""
Run one build session of the stylesheet injector over a project tree.

Walks the project, feeds every JS/TS file through StylePipeline (the same
eligibility rules a bundler plugin applies), writes or reports the rewritten
files and prints the style tags for the collected stylesheets.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from tools.injector.add_assign import DEFAULT_MARKER
from tools.injector.pipeline import DEFAULT_DIRECTIVE_SOURCES, PluginOptions, StylePipeline
from tools.injector.registry import StyleRegistry
from tools.injector.sibling_css import SOURCE_EXT_RE
from tools.injector.tags import TAG_MODES, create_style_tags


LOGGER = logging.getLogger("style_injector.session")

# ============================================================
# CLI
# ============================================================

def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="inject sibling stylesheets into directive(...) calls across a project")
    p.add_argument("--root", default=".", help="Project root to walk.")
    p.add_argument(
        "--source",
        action="append",
        default=None,
        help=f"Glob selecting directive files (repeatable, default: {DEFAULT_DIRECTIVE_SOURCES[0]}).",
    )
    p.add_argument("--marker", default=DEFAULT_MARKER)
    p.add_argument("--inplace", action="store_true", help="Write rewritten files back to disk.")
    p.add_argument("--dry-run", action="store_true", help="Only report which files would change.")
    p.add_argument("--tags-mode", choices=TAG_MODES, default="import")
    p.add_argument("--tags-base", default=None, help="Make hrefs relative to this directory (default: --root).")
    p.add_argument("--prefix", default="/")
    p.add_argument("--log-level", default="INFO")
    return p.parse_args(argv)

# ============================================================
# Session
# ============================================================

def iter_project_files(root: Path) -> List[Path]:
    if not root.is_dir():
        raise FileNotFoundError(f"Project root does not exist: {root}")

    out: List[Path] = []
    for dirpath, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d != "node_modules" and not d.startswith("."))
        for fn in sorted(files):
            if SOURCE_EXT_RE.search(fn):
                out.append(Path(dirpath) / fn)
    return out


def run_session(root: Path, pipeline: StylePipeline) -> List[Tuple[Path, str, str]]:
    """Returns (path, original, rewritten) for every file the pipeline changed."""
    pipeline.build_start()
    changed: List[Tuple[Path, str, str]] = []

    for fp in iter_project_files(root):
        try:
            code = fp.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            LOGGER.warning("SESSION_SKIP: %s is not valid UTF-8", fp)
            continue

        out = pipeline.transform(code, str(fp.resolve()))
        if out is not None:
            changed.append((fp, code, out))

    return changed


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s | %(levelname)s | %(message)s")

    root = Path(args.root).resolve()
    options = PluginOptions(marker=args.marker)
    if args.source:
        options.directive_sources = list(args.source)
    pipeline = StylePipeline(options, StyleRegistry())

    try:
        changed = run_session(root, pipeline)
    except FileNotFoundError as e:
        LOGGER.error("SESSION_ERR: %s", e)
        return 2

    for fp, _, rewritten in changed:
        if args.dry_run:
            print(f"[DRY] {fp}: would rewrite")
            continue
        if args.inplace:
            fp.write_text(rewritten, encoding="utf-8")
            print(f"[OK] {fp}: rewritten")

    LOGGER.info(
        "SESSION_DONE: %d file(s) changed, %d stylesheet(s) collected",
        len(changed),
        len(pipeline.registry),
    )

    tags = create_style_tags(
        pipeline.registry.list(),
        base=args.tags_base or str(root),
        prefix=args.prefix,
        mode=args.tags_mode,
    )
    if tags:
        print(tags)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
