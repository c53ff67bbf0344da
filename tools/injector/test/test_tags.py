import pytest

from tools.injector.tags import create_style_tags

COUNTER = "/app/src/directives/counter.module.css"
WIDGET = "/app/src/directives/widget.module.css"


class TestCreateStyleTags:

    def test_empty(self):
        assert create_style_tags([]) == ""
        assert create_style_tags([], mode="link") == ""

    def test_import_mode_with_base(self):
        assert create_style_tags([COUNTER], base="/app") == (
            '<style>\n@import url("/src/directives/counter.module.css");\n</style>'
        )

    def test_import_mode_multiple(self):
        assert create_style_tags([COUNTER, WIDGET], base="/app") == "\n".join([
            "<style>",
            '@import url("/src/directives/counter.module.css");',
            '@import url("/src/directives/widget.module.css");',
            "</style>",
        ])

    def test_import_mode_absolute_without_base(self):
        assert create_style_tags([COUNTER]) == (
            '<style>\n@import url("/app/src/directives/counter.module.css");\n</style>'
        )

    def test_import_mode_prefix(self):
        assert create_style_tags([COUNTER], base="/app", prefix="/assets/") == (
            '<style>\n@import url("/assets/src/directives/counter.module.css");\n</style>'
        )

    def test_link_mode(self):
        assert create_style_tags([COUNTER], base="/app", mode="link") == (
            '<link rel="stylesheet" href="/src/directives/counter.module.css">'
        )

    def test_link_mode_multiple(self):
        assert create_style_tags([COUNTER, WIDGET], base="/app", mode="link") == "\n".join([
            '<link rel="stylesheet" href="/src/directives/counter.module.css">',
            '<link rel="stylesheet" href="/src/directives/widget.module.css">',
        ])

    def test_link_mode_prefix_without_base_is_ignored(self):
        assert create_style_tags([COUNTER], prefix="/assets/", mode="link") == (
            '<link rel="stylesheet" href="/app/src/directives/counter.module.css">'
        )

    def test_href_is_not_escaped_in_either_mode(self):
        path = "/app/a&b.css"
        assert create_style_tags([path], mode="link") == '<link rel="stylesheet" href="/app/a&b.css">'
        assert '@import url("/app/a&b.css");' in create_style_tags([path], mode="import")

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown tag mode"):
            create_style_tags([COUNTER], mode="inline")
