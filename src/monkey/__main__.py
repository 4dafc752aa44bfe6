#!/usr/bin/env python3
"""
Command-line front end for the Monkey interpreter.

Usage:
    monkey                      start the interactive REPL
    monkey FILE.mky             run a file and print its result
    monkey DIR                  run every .mky file under DIR

Examples:
    # Run a script, showing the parsed program first
    monkey --show-ast examples/fib.mky

    # Use a custom prompt and debug logging
    monkey --config ~/monkey.yaml -v
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .errors import ConfigError
from .repl import run_path, start_repl


def cmd_run(args, config) -> int:
    """Run a file or directory."""
    path = Path(args.path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1
    return run_path(path, config)


def cmd_repl(args, config) -> int:
    """Start the interactive REPL."""
    start_repl(config)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog='monkey',
        description='Monkey programming language interpreter',
    )
    parser.add_argument('path', nargs='?',
                        help='Source file or directory to run (omit for the REPL)')
    parser.add_argument('--config', metavar='PATH',
                        help='YAML configuration file')
    parser.add_argument('--show-ast', action='store_true',
                        help='Print the parsed program before its value')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging to stderr')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        config = load_config(Path(args.config) if args.config else None)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    if args.show_ast:
        config.show_ast = True

    sys.setrecursionlimit(config.recursion_limit)

    try:
        if args.path is None:
            return cmd_repl(args, config)
        return cmd_run(args, config)
    except KeyboardInterrupt:
        return 130


if __name__ == '__main__':
    sys.exit(main())
