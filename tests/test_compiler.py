"""Tests for themeflat.core.compiler."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from themeflat.core.compiler import ThemeCompiler
from themeflat.core.models import ThemeChain, ThemeLayer
from themeflat.core.resolver import ThemeResolver
from themeflat.errors import ErrorCode, ThemeFlatError


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _write_theme(root: Path, name: str, config: dict, files: dict[str, str]) -> None:
    _write(root / name / "theme.config.yaml", yaml.safe_dump(config))
    for rel, content in files.items():
        _write(root / name / rel, content)


def _read_config(theme_dir: Path) -> dict:
    return yaml.safe_load((theme_dir / "theme.config.yaml").read_text(encoding="utf-8"))


@pytest.fixture
def themes(tmp_path: Path) -> Path:
    """The base/child pair: child extends base and both ship shared.css."""
    _write_theme(
        tmp_path,
        "base",
        {"helpers": {"h0": True}},
        {"a.css": "base a", "shared.css": "base shared"},
    )
    _write_theme(
        tmp_path,
        "child",
        {"extends": "base", "helpers": {"h1": True}},
        {"b.css": "child b", "shared.css": "child shared"},
    )
    return tmp_path


class StubResolver:
    """Resolver returning a fixed chain rooted in an in-memory filesystem."""

    def __init__(self, layers: list[ThemeLayer], error: ThemeFlatError | None = None) -> None:
        self._layers = layers
        self._error = error

    @property
    def base_dir(self) -> Path:
        return Path("/themes")

    def resolve_chain(self, theme: str) -> ThemeChain:
        if self._error is not None:
            raise self._error
        return ThemeChain(theme=theme, base_dir=self.base_dir, layers=tuple(self._layers))


def _memory_layers(memory_fs) -> list[ThemeLayer]:
    memory_fs.add_file("/themes/base/a.css", "base a")
    memory_fs.add_file("/themes/child/b.css", "child b")
    return [
        ThemeLayer("base", Path("/themes/base"), {"css": ["a.css"]}),
        ThemeLayer("child", Path("/themes/child"), {"extends": "base", "css": ["b.css"]}),
    ]


class TestEndToEnd:
    def test_child_flattened_into_flat(self, themes: Path):
        compiler = ThemeCompiler(ThemeResolver(themes))

        result = compiler.compile("child", "flat")

        assert result.ok, result.message
        assert bool(result) is True
        flat = themes / "flat"
        assert result.target_dir == flat
        assert result.layers == ("base", "child")
        assert sorted(p.name for p in flat.iterdir()) == [
            "a.css", "b.css", "shared.css", "theme.config.yaml",
        ]
        assert (flat / "shared.css").read_text(encoding="utf-8") == "base shared"
        assert (flat / "b.css").read_text(encoding="utf-8") == "child b"
        assert _read_config(flat) == {"helpers": {"h0": True, "h1": True}, "extends": False}
        assert compiler.last_error is None

    def test_flat_theme_resolves_standalone(self, themes: Path):
        resolver = ThemeResolver(themes)
        assert ThemeCompiler(resolver).compile("child", "flat").ok

        chain = resolver.resolve_chain("flat")

        assert chain.names == ["flat"]

    def test_base_scalar_wins_across_chain(self, tmp_path: Path):
        _write_theme(tmp_path, "one", {"favicon": "one.ico"}, {})
        _write_theme(tmp_path, "two", {"extends": "one", "favicon": "two.ico"}, {})
        _write_theme(tmp_path, "three", {"extends": "two", "favicon": "three.ico"}, {})

        assert ThemeCompiler(ThemeResolver(tmp_path)).compile("three", "flat").ok

        assert _read_config(tmp_path / "flat")["favicon"] == "one.ico"

    def test_empty_helpers_section_is_empty_mapping(self, tmp_path: Path):
        _write_theme(tmp_path, "base", {"helpers": {"h0": True}}, {})
        _write(tmp_path / "child" / "theme.config.yaml", "extends: base\nhelpers:\n")

        result = ThemeCompiler(ThemeResolver(tmp_path)).compile("child", "flat")

        assert result.ok, result.message
        assert _read_config(tmp_path / "flat")["helpers"] == {"h0": True}

    def test_mixin_files_copied_and_key_dropped(self, tmp_path: Path):
        _write_theme(tmp_path, "base", {}, {"a.css": "a"})
        _write_theme(
            tmp_path, "child", {"extends": "base", "mixins": ["extra"], "js": ["c.js"]}, {}
        )
        _write(tmp_path / "extra" / "mixin.config.yaml", yaml.safe_dump({"js": ["m.js"]}))
        _write(tmp_path / "extra" / "js" / "m.js", "mixin js")

        result = ThemeCompiler(ThemeResolver(tmp_path)).compile("child", "flat")

        assert result.ok, result.message
        config = _read_config(tmp_path / "flat")
        assert "mixins" not in config
        assert config["js"] == ["m.js", "c.js"]
        assert (tmp_path / "flat" / "js" / "m.js").read_text(encoding="utf-8") == "mixin js"

    def test_progress_reported_per_layer(self, themes: Path):
        calls: list[tuple[int, int, str]] = []

        ThemeCompiler(ThemeResolver(themes)).compile(
            "child", "flat", progress_cb=lambda cur, tot, msg: calls.append((cur, tot, msg))
        )

        assert calls == [(1, 2, "base"), (2, 2, "child")]


class TestTargetHandling:
    def test_existing_target_without_force_untouched(self, themes: Path):
        _write(themes / "flat" / "keep.txt", "keep")
        compiler = ThemeCompiler(ThemeResolver(themes))

        result = compiler.compile("child", "flat")

        assert result.ok is False
        assert result.error.code is ErrorCode.TARGET_EXISTS
        assert "without --force" in result.message
        assert compiler.last_error == result.message
        assert sorted(p.name for p in (themes / "flat").iterdir()) == ["keep.txt"]

    def test_force_fully_replaces_target(self, themes: Path):
        _write(themes / "flat" / "stale" / "old.css", "old")

        result = ThemeCompiler(ThemeResolver(themes)).compile("child", "flat", force_overwrite=True)

        assert result.ok, result.message
        assert not (themes / "flat" / "stale").exists()
        assert (themes / "flat" / "a.css").exists()

    def test_recompile_with_force_is_stable(self, themes: Path):
        compiler = ThemeCompiler(ThemeResolver(themes))
        assert compiler.compile("child", "flat").ok
        first = _read_config(themes / "flat")

        assert compiler.compile("child", "flat", force_overwrite=True).ok

        assert _read_config(themes / "flat") == first

    def test_invalid_target_name(self, themes: Path):
        result = ThemeCompiler(ThemeResolver(themes)).compile("child", "../escape")
        assert result.ok is False
        assert result.error.code is ErrorCode.INVALID_SOURCE
        assert not (themes.parent / "escape").exists()

    @pytest.mark.parametrize("target", ["base", "child"])
    def test_target_naming_a_layer_is_rejected(self, themes: Path, target: str):
        result = ThemeCompiler(ThemeResolver(themes)).compile(
            "child", target, force_overwrite=True
        )

        assert result.ok is False
        assert result.error.code is ErrorCode.INVALID_SOURCE
        assert (themes / "base" / "a.css").read_text(encoding="utf-8") == "base a"
        assert (themes / "child" / "b.css").read_text(encoding="utf-8") == "child b"

    def test_force_over_symlinked_target_keeps_link_target(self, themes: Path, tmp_path_factory):
        real = tmp_path_factory.mktemp("elsewhere")
        _write(real / "keep.css", "keep")
        try:
            (themes / "flat").symlink_to(real, target_is_directory=True)
        except OSError:
            pytest.skip("symlinks not supported")

        result = ThemeCompiler(ThemeResolver(themes)).compile("child", "flat", force_overwrite=True)

        assert result.ok, result.message
        assert not (themes / "flat").is_symlink()
        assert (real / "keep.css").read_text(encoding="utf-8") == "keep"


class TestFailures:
    def test_unknown_source_propagates_resolver_message(self, tmp_path: Path):
        compiler = ThemeCompiler(ThemeResolver(tmp_path))

        result = compiler.compile("missing", "flat")

        assert result.ok is False
        assert result.error.code is ErrorCode.INVALID_SOURCE
        assert "Cannot load theme" in result.message
        assert not (tmp_path / "flat").exists()

    def test_resolver_error_is_wrapped(self, memory_fs):
        error = ThemeFlatError(ErrorCode.INVALID_THEME, message="boom")
        compiler = ThemeCompiler(StubResolver([], error=error), fs=memory_fs)

        result = compiler.compile("child", "flat")

        assert result.error.code is ErrorCode.INVALID_SOURCE
        assert result.message == "boom"

    def test_delete_failure_aborts_before_staging(self, memory_fs):
        layers = _memory_layers(memory_fs)
        memory_fs.add_file("/themes/flat/locked.css", "x")
        memory_fs.fail_on["remove_file"] = "locked.css"
        compiler = ThemeCompiler(StubResolver(layers), fs=memory_fs)

        result = compiler.compile("child", "flat", force_overwrite=True)

        assert result.error.code is ErrorCode.DELETE_FAILED
        assert not any(op == "make_dir" for op, _ in memory_fs.calls)

    def test_stage_failure(self, memory_fs):
        layers = _memory_layers(memory_fs)
        memory_fs.fail_on["make_dir"] = "/themes/flat"

        result = ThemeCompiler(StubResolver(layers), fs=memory_fs).compile("child", "flat")

        assert result.error.code is ErrorCode.DIRECTORY_CREATE_FAILED

    def test_copy_failure_leaves_partial_output(self, memory_fs):
        layers = _memory_layers(memory_fs)
        memory_fs.fail_on["copy_file"] = "b.css"

        result = ThemeCompiler(StubResolver(layers), fs=memory_fs).compile("child", "flat")

        assert result.error.code is ErrorCode.COPY_FAILED
        assert memory_fs.read("/themes/flat/a.css") == "base a"
        assert "/themes/flat/theme.config.yaml" not in {str(path) for path in memory_fs.files}

    def test_unreadable_layer(self, memory_fs):
        layers = _memory_layers(memory_fs)
        memory_fs.fail_on["list_dir"] = "/themes/child"

        result = ThemeCompiler(StubResolver(layers), fs=memory_fs).compile("child", "flat")

        assert result.error.code is ErrorCode.SOURCE_UNREADABLE

    def test_invalid_config_shape(self, memory_fs):
        memory_fs.add_file("/themes/base/a.css", "a")
        layers = [ThemeLayer("base", Path("/themes/base"), {"helpers": "nope"})]

        result = ThemeCompiler(StubResolver(layers), fs=memory_fs).compile("base", "flat")

        assert result.error.code is ErrorCode.INVALID_CONFIG_SHAPE

    def test_persist_failure(self, memory_fs):
        layers = _memory_layers(memory_fs)
        memory_fs.fail_on["write_text"] = "theme.config.yaml"

        result = ThemeCompiler(StubResolver(layers), fs=memory_fs).compile("child", "flat")

        assert result.error.code is ErrorCode.PERSIST_FAILED
        assert "Problem exporting" in result.message

    def test_zero_byte_write_is_persist_failure(self, memory_fs, monkeypatch):
        layers = _memory_layers(memory_fs)
        monkeypatch.setattr(memory_fs, "write_text", lambda path, content: 0)

        result = ThemeCompiler(StubResolver(layers), fs=memory_fs).compile("child", "flat")

        assert result.error.code is ErrorCode.PERSIST_FAILED

    def test_unexpected_exception_never_escapes(self, memory_fs):
        class ExplodingResolver(StubResolver):
            def resolve_chain(self, theme: str) -> ThemeChain:
                raise RuntimeError("kaboom")

        compiler = ThemeCompiler(ExplodingResolver([]), fs=memory_fs)

        result = compiler.compile("child", "flat")

        assert result.ok is False
        assert result.error.code is ErrorCode.OPERATION_FAILED
        assert "kaboom" in result.message

    def test_last_error_not_cleared_by_success(self, themes: Path):
        compiler = ThemeCompiler(ThemeResolver(themes))
        assert not compiler.compile("missing", "flat")
        failed = compiler.last_error

        assert compiler.compile("child", "flat").ok

        assert compiler.last_error == failed


class TestRemoveTheme:
    def test_symlinked_theme_unlinked_not_followed(self, tmp_path: Path):
        themes = tmp_path / "themes"
        themes.mkdir()
        real = tmp_path / "elsewhere" / "shared"
        _write(real / "a.css", "shared a")
        try:
            (themes / "linked").symlink_to(real, target_is_directory=True)
        except OSError:
            pytest.skip("symlinks not supported")

        result = ThemeCompiler(ThemeResolver(themes)).remove_theme("linked")

        assert result.ok, result.message
        assert not (themes / "linked").is_symlink()
        assert (real / "a.css").read_text(encoding="utf-8") == "shared a"

    def test_removes_compiled_theme(self, themes: Path):
        compiler = ThemeCompiler(ThemeResolver(themes))
        assert compiler.compile("child", "flat").ok

        result = compiler.remove_theme("flat")

        assert result.ok
        assert not (themes / "flat").exists()
        assert (themes / "child").exists()

    def test_missing_theme_fails_cleanly(self, tmp_path: Path):
        compiler = ThemeCompiler(ThemeResolver(tmp_path))

        result = compiler.remove_theme("ghost")

        assert result.ok is False
        assert result.error.code is ErrorCode.DELETE_FAILED
        assert compiler.last_error == result.message

    def test_invalid_name_fails_cleanly(self, tmp_path: Path):
        result = ThemeCompiler(ThemeResolver(tmp_path)).remove_theme("..")
        assert result.ok is False
        assert tmp_path.exists()
