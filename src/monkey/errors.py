"""
Front-end exceptions and diagnostics.

Lexing and parsing failures are raised as exceptions carrying a Diagnostic.
Evaluation failures are not exceptions: they are Error values produced by the
runtime (see monkey.runtime.values).

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)


class MonkeyError(Exception):
    """Base exception for lexer and parser errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(MonkeyError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(MonkeyError):
    """Error during parsing (E1xx)."""
    pass


class ConfigError(Exception):
    """Raised for unreadable or malformed configuration files."""
    pass


def _error(code: str, message: str, span: SourceSpan, source_line: Optional[str],
           hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    return LexerError(_error("E001", f"unexpected character '{char}'", span, source_line))


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    return LexerError(_error(
        "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with a double quote"],
    ))


def error_unterminated_template(span: SourceSpan, source_line: str = None) -> LexerError:
    """E003: Unterminated template literal."""
    return LexerError(_error(
        "E003", "unterminated template literal (expected closing `)", span, source_line,
    ))


def error_invalid_escape_sequence(seq: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E005: Invalid escape sequence in string."""
    return LexerError(_error(
        "E005", f"invalid escape sequence '\\{seq}'", span, source_line,
        hints=["valid escape sequences: \\n, \\t, \\r, \\\", \\\\, \\0, \\x##, \\u####"],
    ))


def error_invalid_number_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E006: Invalid number literal."""
    return LexerError(_error("E006", f"invalid number literal '{text}'", span, source_line))


def error_invalid_hex_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E007: Invalid hexadecimal literal."""
    return LexerError(_error(
        "E007", f"invalid hexadecimal literal '{text}'", span, source_line,
        hints=["hex literals must contain at least one hex digit: 0x1, 0xFF, etc."],
    ))


def error_invalid_binary_literal(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E008: Invalid binary literal."""
    return LexerError(_error(
        "E008", f"invalid binary literal '{text}'", span, source_line,
        hints=["binary literals must contain only 0 and 1: 0b101, 0b1111, etc."],
    ))


def error_invalid_placeholder(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E009: Template placeholder is not a single identifier."""
    return LexerError(_error(
        "E009", f"invalid template placeholder '{{{text}}}'", span, source_line,
        hints=["placeholders hold a single identifier, e.g. `hello {name}`"],
    ))


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    return ParserError(_error(
        "E101", f"expected next token to be {expected}, got {found} instead", span, source_line,
    ))


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of file."""
    return ParserError(_error("E102", f"unexpected end of file, expected {expected}", span, None))


def error_no_prefix_parser(found: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Token cannot start an expression."""
    return ParserError(_error("E103", f"no prefix parse function for {found} found", span, source_line))


def error_integer_out_of_range(text: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E104: Integer literal does not fit in 64 bits."""
    return ParserError(_error("E104", f"could not parse {text!r} as integer", span, source_line))
