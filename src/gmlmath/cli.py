"""
gmlmath Command-Line Interface.

Provides commands to simplify the math in GML files.

Usage:
    gmlmath optimize scripts/             # Print the rewritten text
    gmlmath optimize scr_move.gml --diff  # Show what would change
    gmlmath optimize scripts/ --check     # Exit 1 if anything would change
    gmlmath optimize scripts/ --write     # Rewrite files in place
    gmlmath edits scr_move.gml --json     # List proposed edits
    gmlmath tokens scr_move.gml           # Show tokens (debug)
    gmlmath ast scr_move.gml              # Show the syntax tree (debug)
"""

import argparse
import difflib
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from gmlmath import __version__
from gmlmath.compiler.ast_nodes import ASTNode
from gmlmath.compiler.lexer import Lexer
from gmlmath.compiler.math_optimizer import MathOptimizer
from gmlmath.compiler.parser import parse_source
from gmlmath.compiler.text_edits import TextEdit
from gmlmath.config import OptimizerConfig
from gmlmath.utils.errors import ConfigError, GmlMathError

logger = logging.getLogger("gmlmath")

GML_SUFFIX = ".gml"


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    BOLD = "\033[1m"

    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    # Disable colors if not a TTY or if NO_COLOR is set
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


# Initialize on module load
_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gmlmath",
        description="gmlmath - algebraic simplification for GML source files",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
        help="Logging level (default: warning)",
    )
    parser.add_argument(
        "--no-logical-flow",
        action="store_true",
        help="Skip the boolean condition and control-flow rewrites",
    )
    parser.add_argument(
        "--no-canonical-forms",
        action="store_true",
        help="Skip the text-level canonical form rewrites",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Optimize command
    optimize_parser = subparsers.add_parser(
        "optimize",
        aliases=["opt"],
        help="Simplify the math in GML files",
    )
    optimize_parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        help="Input .gml file or directory (default: current directory)",
    )
    mode = optimize_parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--check",
        action="store_true",
        help="Exit with code 1 if any file would change",
    )
    mode.add_argument(
        "--diff",
        action="store_true",
        help="Print a unified diff of the changes",
    )
    mode.add_argument(
        "--write",
        "-w",
        action="store_true",
        help="Rewrite files in place",
    )

    # Edits command
    edits_parser = subparsers.add_parser(
        "edits",
        help="List the edits proposed for a GML file",
    )
    edits_parser.add_argument(
        "input",
        type=Path,
        help="Input .gml file",
    )
    edits_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    # Tokens command (debug)
    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Show tokens for a GML file (debug)",
    )
    tokens_parser.add_argument(
        "input",
        type=Path,
        help="Input .gml file",
    )

    # AST command (debug)
    ast_parser = subparsers.add_parser(
        "ast",
        help="Show the syntax tree for a GML file (debug)",
    )
    ast_parser.add_argument(
        "input",
        type=Path,
        help="Input .gml file",
    )

    return parser


def _build_config(args: argparse.Namespace) -> OptimizerConfig:
    """Combine environment overrides with the command-line switches."""
    config = OptimizerConfig.from_env(os.environ)
    if args.no_logical_flow:
        config = config.with_overrides(logical_flow=False)
    if args.no_canonical_forms:
        config = config.with_overrides(canonical_forms=False)
    return config


def _collect_files(input_path: Path) -> Optional[list[Path]]:
    """Expand a file or directory into the .gml files to process."""
    if input_path.is_file():
        return [input_path]
    if input_path.is_dir():
        return sorted(input_path.rglob(f"*{GML_SUFFIX}"))
    return None


# =============================================================================
# Commands
# =============================================================================


def cmd_optimize(args: argparse.Namespace) -> int:
    """Handle the optimize command."""
    input_path = args.input or Path(".")
    files = _collect_files(input_path)
    if files is None:
        print(f"Error: Path not found: {input_path}", file=sys.stderr)
        return 1
    if not files:
        print(f"No {GML_SUFFIX} files found in {input_path}", file=sys.stderr)
        return 0

    optimizer = MathOptimizer(args.config)
    exit_code = 0
    changed_count = 0

    for filepath in files:
        try:
            source = filepath.read_text(encoding="utf-8")
            result = optimizer.optimize(source, str(filepath))
        except GmlMathError as e:
            print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
            exit_code = 1
            continue
        except OSError as e:
            print(f"{Colors.RED}Error reading {filepath}:{Colors.RESET} {e}", file=sys.stderr)
            exit_code = 1
            continue

        if result.changed:
            changed_count += 1

        if args.check:
            if result.changed:
                print(f"{Colors.YELLOW}Would simplify:{Colors.RESET} {filepath}")
                exit_code = 1
        elif args.diff:
            diff = get_diff(result.source, result.output, str(filepath))
            if diff:
                print(diff, end="")
        elif args.write:
            if result.changed:
                filepath.write_text(result.output, encoding="utf-8")
                print(f"{Colors.GREEN}Simplified:{Colors.RESET} {filepath} ({len(result.edits)} edit(s))")
        else:
            # Default: print the rewritten text to stdout
            sys.stdout.write(result.output)

    logger.info("%d of %d file(s) changed", changed_count, len(files))
    if args.check and exit_code == 0:
        print(f"{Colors.GREEN}Nothing to simplify{Colors.RESET}")

    return exit_code


def get_diff(source: str, output: str, filename: str = "<input>") -> str:
    """Render a unified diff between the original and rewritten text."""
    return "".join(
        difflib.unified_diff(
            source.splitlines(keepends=True),
            output.splitlines(keepends=True),
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
        )
    )


def _edit_to_dict(edit: TextEdit, source: str) -> dict:
    return {
        "origin": edit.origin,
        "start": edit.start,
        "end": edit.end,
        "original": source[edit.start:edit.end],
        "replacement": edit.text,
    }


def cmd_edits(args: argparse.Namespace) -> int:
    """Handle the edits command."""
    input_path: Path = args.input

    if not input_path.is_file():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
        result = MathOptimizer(args.config).optimize(source, str(input_path))
    except GmlMathError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    if args.json:
        print(
            json.dumps(
                {
                    "file": str(input_path),
                    "changed": result.changed,
                    "accepted": [_edit_to_dict(e, source) for e in result.edits],
                    "rejected": [_edit_to_dict(e, source) for e in result.rejected],
                },
                indent=2,
            )
        )
        return 0

    print(f"{Colors.BOLD}Edits for {input_path}:{Colors.RESET}")
    if not result.edits and not result.rejected:
        print("  (none)")
    for edit in result.edits:
        _print_edit(edit, source, Colors.GREEN + "accepted" + Colors.RESET)
    for edit in result.rejected:
        _print_edit(edit, source, Colors.YELLOW + "rejected" + Colors.RESET)
    return 0


def _print_edit(edit: TextEdit, source: str, status: str) -> None:
    original = source[edit.start:edit.end].strip()
    replacement = edit.text.strip() or "(removed)"
    print(
        f"  {status} {Colors.CYAN}{edit.origin}{Colors.RESET} "
        f"{Colors.GRAY}[{edit.start}:{edit.end}]{Colors.RESET} {original!r} -> {replacement!r}"
    )


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
        for token in Lexer(source, str(input_path)).tokenize():
            print(token)
        return 0

    except GmlMathError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    input_path: Path = args.input

    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
        _print_ast(parse_source(source, str(input_path)))
        return 0

    except GmlMathError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _print_ast(node: ASTNode, indent: int = 0) -> None:
    """Pretty print an AST node."""
    prefix = "  " * indent
    print(f"{prefix}{node.type} [{node.start}:{node.end}]")

    for key, value in _node_fields(node):
        if isinstance(value, ASTNode):
            print(f"{prefix}  {key}:")
            _print_ast(value, indent + 2)
        elif isinstance(value, tuple) and value and isinstance(value[0], ASTNode):
            print(f"{prefix}  {key}: [")
            for item in value:
                _print_ast(item, indent + 2)
            print(f"{prefix}  ]")
        else:
            print(f"{prefix}  {key}: {value!r}")


def _node_fields(node: ASTNode) -> list[tuple[str, object]]:
    """List a node's fields except its offsets."""
    return [
        (name, getattr(node, name))
        for name in node.__dataclass_fields__
        if name not in ("start", "end")
    ]


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        args.config = _build_config(args)
    except ConfigError as e:
        print(f"{Colors.RED}Configuration error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    command_handlers = {
        "optimize": cmd_optimize,
        "opt": cmd_optimize,
        "edits": cmd_edits,
        "tokens": cmd_tokens,
        "ast": cmd_ast,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
