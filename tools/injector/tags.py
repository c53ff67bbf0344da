"""Render collected stylesheet paths as HTML for injection into a page head."""

from __future__ import annotations

import os
from typing import List, Optional

from jinja2 import Environment, StrictUndefined

TAG_MODES = ("import", "link")

_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=False)

LINK_TEMPLATE = _env.from_string(
    "{% for href in hrefs %}<link rel=\"stylesheet\" href=\"{{ href }}\">"
    "{% if not loop.last %}\n{% endif %}{% endfor %}"
)

STYLE_TEMPLATE = _env.from_string(
    "<style>\n"
    "{% for href in hrefs %}@import url(\"{{ href }}\");\n{% endfor %}"
    "</style>"
)


def to_href(path: str, base: Optional[str] = None, prefix: str = "/") -> str:
    if not base:
        return path
    return prefix + os.path.relpath(path, base).replace(os.sep, "/")


def create_style_tags(
    style_paths: List[str],
    base: Optional[str] = None,
    prefix: str = "/",
    mode: str = "import",
) -> str:
    if mode not in TAG_MODES:
        raise ValueError(f"Unknown tag mode {mode!r}; expected one of {', '.join(TAG_MODES)}")

    if not style_paths:
        return ""

    hrefs = [to_href(p, base, prefix) for p in style_paths]
    template = LINK_TEMPLATE if mode == "link" else STYLE_TEMPLATE
    return template.render(hrefs=hrefs)
