"""Locate the stylesheet that sits next to a directive source file."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional


# probe order matters: first hit wins
CSS_EXTENSIONS = [
    ".css.ts",
    ".css.js",
    ".module.css",
    ".module.scss",
    ".css",
]

# compiled stylesheets (vanilla-extract style) are imported without the script suffix
_SCRIPT_CSS_EXTENSIONS = {".css.ts", ".css.js"}

SOURCE_EXT_RE = re.compile(r"\.(ts|js|tsx|jsx)$")


@dataclass(frozen=True)
class SiblingCss:
    path: str
    import_path: str


def find_sibling_css(file_path: str) -> Optional[SiblingCss]:
    directory = os.path.dirname(file_path)
    base = SOURCE_EXT_RE.sub("", os.path.basename(file_path))

    for ext in CSS_EXTENSIONS:
        css_path = os.path.join(directory, base + ext)
        if not os.path.exists(css_path):
            continue
        if ext in _SCRIPT_CSS_EXTENSIONS:
            import_path = "./" + base + ".css"
        else:
            import_path = "./" + base + ext
        return SiblingCss(path=css_path, import_path=import_path)

    return None
