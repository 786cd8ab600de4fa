#!/usr/bin/env python3
"""
CLI for the zemscript interpreter.

Usage:
    python -m zemscript run FILE [--config CFG] [--log-level LEVEL] [--print-result]
    python -m zemscript check FILE
    python -m zemscript sexpr FILE
    python -m zemscript fmt FILE

Examples:
    # Run a script and show the value of its last statement
    python -m zemscript run examples/fact.zem --print-result

    # Trace closure creation and calls
    python -m zemscript run examples/counter.zem --log-level DEBUG

    # Check syntax only
    python -m zemscript check examples/fact.zem
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional


def _read_source(path_str: str) -> Optional[str]:
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding="utf-8")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_check(args):
    """Check a script for lexer and parser errors."""
    from .errors import DiagnosticCollector, ZemError
    from .parser import parse_source

    source = _read_source(args.file)
    if source is None:
        return 1

    collector = DiagnosticCollector()
    try:
        program = parse_source(source, args.file)
    except ZemError as e:
        collector.add_error(e)
        print(collector.format_all(), file=sys.stderr)
        return 1

    print(f"OK: {Path(args.file).name} - {len(program.statements)} statement(s), no errors")
    return 0


def cmd_sexpr(args):
    """Print the S-expression form of a script."""
    from .errors import ZemError
    from .parser import parse_source
    from .printer import to_sexpr

    source = _read_source(args.file)
    if source is None:
        return 1
    try:
        program = parse_source(source, args.file)
    except ZemError as e:
        print(e, file=sys.stderr)
        return 1
    for stmt in program.statements:
        print(to_sexpr(stmt))
    return 0


def cmd_fmt(args):
    """Print a script in canonical form."""
    from .errors import ZemError
    from .parser import parse_source
    from .printer import to_source

    source = _read_source(args.file)
    if source is None:
        return 1
    try:
        program = parse_source(source, args.file)
    except ZemError as e:
        print(e, file=sys.stderr)
        return 1
    print(to_source(program))
    return 0


def cmd_run(args):
    """Run a script."""
    from .config import InterpreterConfig, load_config, config_from_environment
    from .errors import ZemError
    from .runtime import Interpreter

    try:
        if args.config:
            config = load_config(args.config)
        else:
            config = config_from_environment() or InterpreterConfig()
    except (OSError, ValueError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    _configure_logging(args.log_level or config.log_level)

    source = _read_source(args.file)
    if source is None:
        return 1

    interpreter = Interpreter(config, output=sys.stdout)
    try:
        value = interpreter.eval(source, args.file)
    except ZemError as e:
        print(e, file=sys.stderr)
        return 1

    if args.print_result and value is not None:
        print(value.to_display())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='python -m zemscript',
        description='zemscript interpreter',
    )

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Run a script')
    run_parser.add_argument('file', help='Script source file')
    run_parser.add_argument('-c', '--config', metavar='FILE',
                            help='YAML interpreter configuration')
    run_parser.add_argument('--log-level', metavar='LEVEL',
                            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                            type=str.upper, help='Logging level (overrides the configuration)')
    run_parser.add_argument('-r', '--print-result', action='store_true',
                            help='Print the value of the last statement')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a script for syntax errors')
    check_parser.add_argument('file', help='Script source file')

    # sexpr command
    sexpr_parser = subparsers.add_parser('sexpr', help='Print the S-expression form')
    sexpr_parser.add_argument('file', help='Script source file')

    # fmt command
    fmt_parser = subparsers.add_parser('fmt', help='Print the canonical source form')
    fmt_parser.add_argument('file', help='Script source file')

    args = parser.parse_args(argv)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'sexpr':
        return cmd_sexpr(args)
    elif args.action == 'fmt':
        return cmd_fmt(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
