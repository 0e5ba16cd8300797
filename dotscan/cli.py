from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from .analysis.scope import variables_to_dict
from .config import load_options
from .defs.renderer import render_defs
from .defs.scanner import scan_defs
from .errors import DotScanError
from .jsonic import dumps as jdumps
from .options import ScanOptions
from .pipeline import scan_template
from .template.scanner import scan_dot
from .template.tree import parse_dot
from .version import tool_version


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dotscan",
        description="Static variable analysis for doT templates",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Arguments shared by all subcommands
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("template", help="template file, or - to read from stdin")
        sp.add_argument(
            "--config",
            metavar="PATH",
            help="option file (default: dotscan.yaml in the current directory, if present)",
        )
        sp.add_argument("--debug", action="store_true", help="log pipeline details to stderr")

    sp_vars = sub.add_parser("vars", help="variable analysis (JSON)")
    add_common(sp_vars)

    sp_render = sub.add_parser("render", help="template with compile-time tags expanded")
    add_common(sp_render)

    sp_tokens = sub.add_parser("tokens", help="flat token list (JSON)")
    add_common(sp_tokens)
    sp_tokens.add_argument(
        "--defs",
        action="store_true",
        help="scan compile-time tags instead of runtime tags",
    )
    sp_tokens.add_argument("--include-text", action="store_true", help="include literal text tokens")

    sp_tree = sub.add_parser("tree", help="runtime tag tree after expansion (JSON)")
    add_common(sp_tree)
    sp_tree.add_argument("--include-text", action="store_true", help="include literal text tokens")

    return p


def _read_template(arg: str) -> str:
    """Read the template from a file or, for "-", from stdin."""
    if arg == "-":
        return sys.stdin.read()
    path = Path(arg)
    if not path.is_file():
        raise ValueError(f"Template file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Failed to read template file {path}: {e}")


def _options(ns: argparse.Namespace, base: ScanOptions) -> ScanOptions:
    config = Path(ns.config) if getattr(ns, "config", None) else None
    return load_options(config, base=base)


def _setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s", stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging(bool(getattr(ns, "debug", False)))

    try:
        template = _read_template(ns.template)
        data: Any

        if ns.cmd == "vars":
            options = _options(ns, ScanOptions(ignore_text=True))
            data = variables_to_dict(scan_template(template, options))

        elif ns.cmd == "render":
            options = _options(ns, ScanOptions())
            sys.stdout.write(render_defs(template, options))
            return 0

        elif ns.cmd == "tokens":
            options = _options(ns, ScanOptions(ignore_text=not ns.include_text, ignore_def_text=not ns.include_text))
            if ns.defs:
                tokens = scan_defs(template, ignore_def_text=options.ignore_def_text)
            else:
                tokens = scan_dot(template, ignore_text=options.ignore_text)
            data = [token.to_dict() for token in tokens]

        elif ns.cmd == "tree":
            options = _options(ns, ScanOptions(ignore_text=not ns.include_text))
            runtime_template = render_defs(template, options)
            tree = parse_dot(scan_dot(runtime_template, ignore_text=options.ignore_text))
            data = [token.to_dict() for token in tree]

        else:
            raise ValueError(f"Unknown command: {ns.cmd}")

        sys.stdout.write(jdumps(data))
        return 0

    except DotScanError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
