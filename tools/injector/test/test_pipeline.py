import pytest

from tools.injector.pipeline import (
    PluginOptions,
    StylePipeline,
    glob_to_regex,
    has_directive_call,
    matches_pattern,
)
from tools.injector.registry import StyleRegistry

CODE = "import { directive } from 'gonia'\ndirective('x', fn)"


@pytest.fixture
def project(tmp_path):
    d = tmp_path / "src" / "directives"
    d.mkdir(parents=True)
    (d / "x.module.css").write_text(".x {}\n", encoding="utf-8")
    (d / "x.ts").write_text(CODE, encoding="utf-8")
    return tmp_path


class TestGlob:

    @pytest.mark.parametrize("pattern, path, expected", [
        ("src/directives/**/*.ts", "/app/src/directives/x.ts", True),
        ("src/directives/**/*.ts", "/app/src/directives/deep/er/x.ts", True),
        ("src/directives/**/*.ts", "/app/src/components/x.ts", False),
        ("src/directives/*.ts", "/app/src/directives/deep/x.ts", False),
        ("src/directives/*.ts", "/app/src/directives/x.ts", True),
        ("src/directives/*.ts", "/app/src/directives/x.tsx", False),
        ("lib/components/**/*.ts", "C:\\app\\lib\\components\\widget.ts", True),
        ("src/(x)/*.ts", "/app/src/(x)/a.ts", True),
    ])
    def test_matches_pattern(self, pattern, path, expected):
        assert matches_pattern(path, pattern) is expected

    def test_regex_shape(self):
        assert glob_to_regex("a/**/b*.js").pattern == "a/.*b[^/]*\\.js$"

    def test_has_directive_call(self):
        assert has_directive_call("directive('counter', fn)")
        assert has_directive_call("directive ('counter', fn)")
        assert not has_directive_call("const x = 1")


class TestStylePipeline:

    def test_transforms_matching_file(self, project):
        registry = StyleRegistry()
        pipeline = StylePipeline(registry=registry)
        out = pipeline.transform(CODE, str(project / "src" / "directives" / "x.ts"))
        assert out is not None
        assert "import * as $styles from './x.module.css'" in out
        assert "assign: { $styles }" in out
        assert registry.list() == [str(project / "src" / "directives" / "x.module.css")]

    def test_skips_non_js_files(self, project):
        assert StylePipeline().transform(CODE, str(project / "src" / "directives" / "x.html")) is None

    def test_skips_node_modules(self, tmp_path):
        d = tmp_path / "node_modules" / "lib" / "src" / "directives"
        d.mkdir(parents=True)
        (d / "x.module.css").write_text("", encoding="utf-8")
        assert StylePipeline().transform(CODE, str(d / "x.ts")) is None

    def test_skips_without_directive_call(self, project):
        assert StylePipeline().transform("const x = 1", str(project / "src" / "directives" / "x.ts")) is None

    def test_skips_files_outside_sources(self, project):
        d = project / "src" / "components"
        d.mkdir()
        (d / "x.module.css").write_text("", encoding="utf-8")
        assert StylePipeline().transform(CODE, str(d / "x.ts")) is None

    def test_skips_without_sibling_css(self, project):
        registry = StyleRegistry()
        out = StylePipeline(registry=registry).transform(CODE, str(project / "src" / "directives" / "y.ts"))
        assert out is None
        assert registry.list() == []

    def test_auto_styles_off(self, project):
        registry = StyleRegistry()
        pipeline = StylePipeline(PluginOptions(auto_styles=False), registry)
        assert pipeline.transform(CODE, str(project / "src" / "directives" / "x.ts")) is None
        assert registry.list() == []

    def test_custom_sources(self, tmp_path):
        d = tmp_path / "lib" / "components"
        d.mkdir(parents=True)
        (d / "widget.module.css").write_text("", encoding="utf-8")
        pipeline = StylePipeline(PluginOptions(directive_sources=["lib/components/**/*.ts"]))
        out = pipeline.transform("directive('widget', fn)", str(d / "widget.ts"))
        assert "$styles" in out

    def test_already_transformed_returns_none_but_registers(self, project):
        registry = StyleRegistry()
        pipeline = StylePipeline(registry=registry)
        file_id = str(project / "src" / "directives" / "x.ts")
        once = pipeline.transform(CODE, file_id)
        pipeline.build_start()
        assert pipeline.transform(once, file_id) is None
        assert len(registry) == 1

    def test_registers_once_per_path(self, project):
        registry = StyleRegistry()
        pipeline = StylePipeline(registry=registry)
        file_id = str(project / "src" / "directives" / "x.ts")
        pipeline.transform(CODE, file_id)
        pipeline.transform(CODE, file_id)
        assert len(registry) == 1

    def test_build_start_resets_registry(self, project):
        registry = StyleRegistry()
        registry.add("/stale.css")
        StylePipeline(registry=registry).build_start()
        assert registry.list() == []
