"""
Build-pipeline host for the stylesheet injector.

Per candidate file: eligibility filter -> sibling stylesheet lookup ->
registry insertion -> marker injection. The registry is owned by the caller
and reset at build start.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from tools.injector.add_assign import DEFAULT_MARKER, SKIP_ALREADY_MARKED, add_assign_to_source
from tools.injector.registry import StyleRegistry
from tools.injector.scan import DEFAULT_TOKEN, call_pattern
from tools.injector.sibling_css import SOURCE_EXT_RE, find_sibling_css


logger = logging.getLogger("style_injector.pipeline")

DEFAULT_DIRECTIVE_SOURCES = ["src/directives/**/*.ts"]

_REGEX_SPECIALS = ".+?^${}()|[]\\"


def glob_to_regex(pattern: str) -> re.Pattern:
    """
    `**` matches any run including '/', `*` a run of non-'/' characters.

    Anchored at the end only, so a relative pattern matches absolute ids.
    """
    regex = ""
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*" and i + 1 < n and pattern[i + 1] == "*":
            regex += ".*"
            i += 2
            if i < n and pattern[i] == "/":
                i += 1
            continue
        if c == "*":
            regex += "[^/]*"
        elif c in _REGEX_SPECIALS:
            regex += "\\" + c
        else:
            regex += c
        i += 1
    return re.compile(regex + "$")


def matches_pattern(file_path: str, pattern: str) -> bool:
    return glob_to_regex(pattern).search(file_path.replace("\\", "/")) is not None


def has_directive_call(code: str, token: str = DEFAULT_TOKEN) -> bool:
    return call_pattern(token).search(code) is not None


@dataclass
class PluginOptions:
    directive_sources: List[str] = field(default_factory=lambda: list(DEFAULT_DIRECTIVE_SOURCES))
    auto_styles: bool = True
    marker: str = DEFAULT_MARKER
    token: str = DEFAULT_TOKEN


class StylePipeline:
    name = "style-injector"

    def __init__(self, options: Optional[PluginOptions] = None, registry: Optional[StyleRegistry] = None) -> None:
        self.options = options or PluginOptions()
        self.registry = registry if registry is not None else StyleRegistry()
        self._patterns = [glob_to_regex(p) for p in self.options.directive_sources]

    def build_start(self) -> None:
        self.registry.reset()
        logger.info("PIPELINE_START: registry cleared")

    def is_directive_file(self, file_id: str) -> bool:
        normalized = file_id.replace("\\", "/")
        return any(p.search(normalized) for p in self._patterns)

    def is_candidate(self, code: str, file_id: str) -> bool:
        if not self.options.auto_styles:
            return False
        if not SOURCE_EXT_RE.search(file_id):
            return False
        if "node_modules" in file_id:
            return False
        if not has_directive_call(code, self.options.token):
            return False
        return self.is_directive_file(file_id)

    def transform(self, code: str, file_id: str) -> Optional[str]:
        """Rewritten code, or None when the file is left as is."""
        if not self.is_candidate(code, file_id):
            return None

        css = find_sibling_css(file_id)
        if css is None:
            logger.debug("PIPELINE_SKIP: no sibling stylesheet for %s", file_id)
            return None

        if self.registry.add(css.path):
            logger.info("PIPELINE_REGISTER: %s", css.path)

        report = add_assign_to_source(code, css.import_path, self.options.marker, self.options.token)
        for skip in report.skipped:
            if skip.reason != SKIP_ALREADY_MARKED:
                logger.warning("PIPELINE_SKIP_CALL: %s offset=%d reason=%s", file_id, skip.offset, skip.reason)

        if not report.changed:
            return None

        logger.info("PIPELINE_TRANSFORMED: %s (%d call(s))", file_id, report.injected)
        return report.code

