#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Command line host for the inline engine.

    jsinline src/app.js                    # expanded source to stdout
    jsinline src/app.js -o build/app.js    # ... or to a file
    jsinline src/app.js --json             # TransformResult as JSON (honours -o)

Diagnostics go to stderr; the exit status is 1 when any were reported.
Settings not given on the command line come from ``JSINLINE_*`` environment
variables or .env.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from jsinline import __version__
from jsinline.core.config import Settings
from jsinline.macros import FileSystemContext, transform
from jsinline.schemas import TransformResult

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsinline",
        description="Expand %inline('module').fn(...) macros in a JavaScript file.",
    )
    parser.add_argument("file", help="JavaScript file to expand")
    parser.add_argument("-o", "--output", help="write the result here instead of stdout")
    parser.add_argument(
        "--strategy",
        choices=("reparse", "sweep"),
        help="site driver (default: reparse)",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        default=None,
        help="also expand %%inline sites found inside inlined modules",
    )
    parser.add_argument(
        "--ext",
        action="append",
        dest="extensions",
        metavar="SUFFIX",
        help="module file suffix to try, in order; repeatable (default: '' then .js)",
    )
    parser.add_argument("--max-passes", type=int, help="upper bound on expansion passes")
    parser.add_argument("--json", action="store_true", help="emit a JSON result object instead of the source")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


# -----------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {
        "strategy":   args.strategy,
        "recursive":  args.recursive,
        "extensions": args.extensions,
        "max_passes": args.max_passes,
    }
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file)
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"jsinline: cannot read {path}: {exc.strerror}", file=sys.stderr)
        return 2

    ctx = FileSystemContext(path.parent, extensions=settings.extensions, origin=str(path))
    output = transform(source, ctx, settings)

    if args.json:
        result = TransformResult(
            path=str(path),
            output=output,
            diagnostics=ctx.diagnostics,
            dependencies=ctx.dependencies,
        )
        payload = result.model_dump_json(indent=2) + "\n"
    else:
        payload = output

    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
    else:
        sys.stdout.write(payload)

    if not args.json:
        for diagnostic in ctx.diagnostics:
            print(f"{path}: {diagnostic.message}", file=sys.stderr)

    logger.info("Expanded %s with %d diagnostic(s)", path, len(ctx.diagnostics))
    return 1 if ctx.diagnostics else 0


if __name__ == "__main__":
    sys.exit(main())
