"""
Interactive REPL and file runner for Monkey.

The REPL keeps one root Environment for the whole session, so bindings from
earlier lines stay visible. Files and directories each run in a fresh root
environment.
"""

import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .config import InterpreterConfig
from .errors import MonkeyError
from .lexer import tokenize
from .parser import parse
from .runtime import Environment, Error, Value, evaluate


logger = logging.getLogger(__name__)


def greeting() -> str:
    """Banner shown when the REPL starts."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "there"
    return (f"Hi {user}! This is the Monkey Programming Language\n"
            "Feel free to type in commands")


def execute_source(source: str, env: Environment, out: TextIO,
                   filename: Optional[str] = None, show_ast: bool = False) -> Value:
    """
    Lex, parse and evaluate `source` in `env`, printing the AST if asked.

    Raises:
        LexerError, ParserError: If the source does not lex or parse
    """
    program = parse(tokenize(source, filename), filename, source)
    if show_ast:
        print(program, file=out)
    return evaluate(program, env)


def start_repl(config: Optional[InterpreterConfig] = None,
               stdin: TextIO = None, stdout: TextIO = None) -> None:
    """Read lines until EOF, evaluating each in one persistent environment."""
    config = config or InterpreterConfig()
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    env = Environment(name="repl")

    if config.greeting:
        print(greeting(), file=stdout)

    while True:
        stdout.write(config.prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            stdout.write("\n")
            return
        if not line.strip():
            continue

        try:
            result = execute_source(line, env, stdout, show_ast=config.show_ast)
        except MonkeyError as e:
            print(e.diagnostic.format(), file=stdout)
            continue
        except RecursionError:
            print("error: maximum recursion depth exceeded", file=stdout)
            continue
        print(result.inspect(), file=stdout)


def run_file(path: Path, config: Optional[InterpreterConfig] = None,
             stdout: TextIO = None) -> int:
    """
    Run one source file in a fresh environment and print its result.

    Returns:
        0 on success, 1 if the file is unreadable, fails to lex or parse,
        exhausts the recursion limit, or evaluates to an Error
    """
    config = config or InterpreterConfig()
    stdout = stdout or sys.stdout
    path = Path(path)
    logger.debug("running file %s", path)

    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"error: could not read {path}: {e}", file=stdout)
        return 1

    try:
        result = execute_source(source, Environment(name=path.name), stdout,
                                filename=str(path), show_ast=config.show_ast)
    except MonkeyError as e:
        print(e.diagnostic.format(), file=stdout)
        return 1
    except RecursionError:
        print(f"error: maximum recursion depth exceeded in {path}", file=sys.stderr)
        return 1

    print(result.inspect(), file=stdout)
    return 1 if isinstance(result, Error) else 0


def collect_sources(directory: Path, extension: str) -> List[Path]:
    """Non-hidden files with `extension` under `directory`, recursively, sorted."""
    found = []
    for entry in sorted(Path(directory).iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            found.extend(collect_sources(entry, extension))
        elif entry.is_file() and entry.name.endswith(extension) and entry.name != extension:
            found.append(entry)
    return found


def run_path(path: Path, config: Optional[InterpreterConfig] = None,
             stdout: TextIO = None) -> int:
    """Run a file, or every source file in a directory tree.

    Returns the highest exit status of the files run.
    """
    config = config or InterpreterConfig()
    path = Path(path)
    if not path.is_dir():
        return run_file(path, config, stdout)

    status = 0
    for source in collect_sources(path, config.extension):
        status = max(status, run_file(source, config, stdout))
    return status
