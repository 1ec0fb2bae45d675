"""Command-line bootstrap."""

from __future__ import annotations

import argparse
import json
import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from themeflat import __version__
from themeflat.core.compiler import ThemeCompiler
from themeflat.core.models import CompileResult
from themeflat.core.resolver import ThemeResolver
from themeflat.errors import ErrorCode, ThemeFlatError, format_error_for_user

if TYPE_CHECKING:
    from themeflat.config.settings import AppSettings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

_CONSOLE_HANDLER_NAME = "themeflat.console"


def _configure_logger(settings: AppSettings, verbose: bool) -> logging.Logger:
    logger = logging.getLogger("themeflat")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        handler = RotatingFileHandler(
            settings.log_dir / "themeflat.log",
            maxBytes=512_000,
            backupCount=3,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)

    # Console output follows the current invocation's --verbose flag.
    for existing in [h for h in logger.handlers if h.get_name() == _CONSOLE_HANDLER_NAME]:
        logger.removeHandler(existing)
    if verbose:
        console = logging.StreamHandler(sys.stderr)
        console.set_name(_CONSOLE_HANDLER_NAME)
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(console)
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="themeflat",
        description="Flatten a theme and everything it extends into a standalone theme.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--themes-dir",
        type=Path,
        default=None,
        help="Directory holding the themes (defaults to the saved setting)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")

    sub = parser.add_subparsers(dest="command", required=True)

    compile_parser = sub.add_parser("compile", help="Compile SOURCE into a new flat theme TARGET")
    compile_parser.add_argument("source", help="Name of the theme to flatten")
    compile_parser.add_argument("target", help="Name of the theme to create")
    compile_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Overwrite TARGET if it already exists",
    )

    remove_parser = sub.add_parser("remove", help="Delete a theme directory")
    remove_parser.add_argument("theme", help="Name of the theme to remove")

    chain_parser = sub.add_parser("chain", help="Show the layer order of a theme, base first")
    chain_parser.add_argument("theme", help="Name of the theme to resolve")
    return parser


def run_cli(argv: Sequence[str] | None = None, settings: AppSettings | None = None) -> int:
    """Parse arguments, run one command and return the process exit code."""
    args = build_parser().parse_args(argv)
    if settings is None:
        from themeflat.config.settings import AppSettings
        settings = AppSettings()
    logger = _configure_logger(settings, args.verbose)
    logger.info("themeflat %s command=%s", __version__, args.command)

    themes_dir = args.themes_dir or (Path(settings.themes_dir) if settings.themes_dir else None)
    if themes_dir is None:
        error = ThemeFlatError(ErrorCode.CONFIG_INVALID, message="No themes directory configured.")
        _emit_error(error, as_json=args.json)
        return EXIT_USAGE
    if args.themes_dir:
        settings.themes_dir = str(args.themes_dir)

    resolver = ThemeResolver(themes_dir, config_filename=settings.config_filename)

    if args.command == "chain":
        return _run_chain(resolver, args.theme, as_json=args.json)

    compiler = ThemeCompiler(resolver, config_filename=settings.config_filename)
    if args.command == "compile":
        result = compiler.compile(args.source, args.target, force_overwrite=args.force)
        if result.ok:
            settings.last_source = args.source
            settings.last_target = args.target
    else:
        result = compiler.remove_theme(args.theme)
    return _emit_result(result, as_json=args.json)


def _run_chain(resolver: ThemeResolver, theme: str, *, as_json: bool) -> int:
    try:
        chain = resolver.resolve_chain(theme)
    except ThemeFlatError as exc:
        _emit_error(exc, as_json=as_json)
        return EXIT_FAILED
    if as_json:
        layers = [
            {"name": layer.name, "path": str(layer.path), "mixin": layer.is_mixin}
            for layer in chain
        ]
        print(json.dumps({"theme": chain.theme, "layers": layers}, indent=2))
    else:
        for layer in chain:
            suffix = " (mixin)" if layer.is_mixin else ""
            print(f"{layer.name}{suffix}")
    return EXIT_OK


def _emit_result(result: CompileResult, *, as_json: bool) -> int:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.ok:
        print(f"Done: {result.target_dir}")
    else:
        print(format_error_for_user(result.error), file=sys.stderr)
    return EXIT_OK if result.ok else EXIT_FAILED


def _emit_error(error: ThemeFlatError, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps({"ok": False, "error": error.to_dict()}, indent=2))
    else:
        print(format_error_for_user(error), file=sys.stderr)
