"""CLI entry point: run `lioncode file.lion` or `python -m lioncode file.lion`."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

EMIT_CHOICES = ("parse", "ast", "optimized", "js")


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    from .compiler.driver import CompilerDriver
    from .shared.serialization import serialize_ast
    from .utils.config import DEFAULT_TARGET
    from .utils.io_utils import read_source_file, write_output_file

    parser = argparse.ArgumentParser(prog="lioncode", description="Compile a LionCode (.lion) file to JavaScript.")
    parser.add_argument("file", type=Path, help="Path to .lion source file")
    parser.add_argument("-o", "--output", type=Path, help="Write the result here instead of stdout")
    parser.add_argument("--target", default=DEFAULT_TARGET, help=f"Output target (default: {DEFAULT_TARGET})")
    parser.add_argument("--emit", choices=EMIT_CHOICES, default="js", help="Pipeline stage to print (default: js)")
    parser.add_argument("--no-optimize", action="store_true", help="Generate code from the unoptimized AST")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress to stderr")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    path = args.file
    if not path.exists():
        sys.stderr.write(f"lioncode: error: file not found: {path}\n")
        return 1
    if not path.is_file():
        sys.stderr.write(f"lioncode: error: not a file: {path}\n")
        return 1

    try:
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"lioncode: error: could not read file: {e}\n")
        return 1

    result = CompilerDriver().compile(
        source, str(path), optimize_ast=not args.no_optimize, target=args.target,
    )
    if not result.success:
        sys.stderr.write(result.reporter.format_all_errors() + "\n")
        return 1

    if args.emit == "parse":
        text = result.tree.pretty()
    elif args.emit == "ast":
        text = serialize_ast(result.ast)
    elif args.emit == "optimized":
        text = serialize_ast(result.optimized if result.optimized is not None else result.ast)
    else:
        text = result.output

    if args.output is not None:
        write_output_file(args.output, text + "\n")
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
