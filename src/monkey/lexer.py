"""
Lexer for the Monkey language.

Converts source text into a stream of tokens for the parser.
Supports:
- Single-line comments (//)
- String literals with escape sequences
- Template literals in backquotes with {identifier} placeholders
- Integer literals (decimal, hex, binary)
- All keywords, operators and delimiters of the language
"""

from typing import List, Optional, Iterator
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan, TemplateFragment, lookup_identifier
)
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_template,
    error_invalid_escape_sequence,
    error_invalid_number_literal,
    error_invalid_hex_literal,
    error_invalid_binary_literal,
    error_invalid_placeholder,
)


HEX_DIGITS = '0123456789abcdefABCDEF'

SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '<': TokenType.LT,
    '>': TokenType.GT,
    '=': TokenType.ASSIGN,
    '!': TokenType.BANG,
    '&': TokenType.AND,
    '|': TokenType.OR,
    ':': TokenType.COLON,
    ';': TokenType.SEMICOLON,
    ',': TokenType.COMMA,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
}


class Lexer:
    """
    Tokenizer for Monkey source code.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_whitespace_and_comments(self) -> None:
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\n\r':
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                while self._peek() != '\n' and not self._is_at_end():
                    self._advance()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_string(self) -> Token:
        """Scan a double-quoted string literal."""
        start = self._location()
        self._advance()  # consume opening quote

        chars = []
        while not self._is_at_end() and self._peek() != '"':
            ch = self._peek()
            if ch == '\n':
                raise error_unterminated_string(
                    self._span(start),
                    self.get_source_line(start.line)
                )
            if ch == '\\':
                self._advance()  # consume backslash
                chars.append(self._scan_escape_sequence())
            else:
                chars.append(self._advance())

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_escape_sequence(self) -> str:
        """Parse an escape sequence after backslash."""
        esc_start = self._location()
        if self._is_at_end():
            raise error_invalid_escape_sequence(
                "", self._span(esc_start), self.get_source_line(esc_start.line)
            )

        ch = self._advance()
        escape_chars = {
            'n': '\n',
            't': '\t',
            'r': '\r',
            '\\': '\\',
            '"': '"',
            "'": "'",
            '0': '\0',
        }

        if ch in escape_chars:
            return escape_chars[ch]
        elif ch in 'xu':
            # \xHH or \uHHHH
            width = 2 if ch == 'x' else 4
            hex_chars = ''
            for _ in range(width):
                if self._peek() not in HEX_DIGITS or self._is_at_end():
                    raise error_invalid_escape_sequence(
                        ch + hex_chars, self._span(esc_start),
                        self.get_source_line(esc_start.line)
                    )
                hex_chars += self._advance()
            return chr(int(hex_chars, 16))
        else:
            raise error_invalid_escape_sequence(
                ch, self._span(esc_start), self.get_source_line(esc_start.line)
            )

    def _scan_template(self) -> Token:
        """
        Scan a backquoted template literal.

        The token value is a tuple of TemplateFragment; identifier fragments
        come from `{name}` placeholders. `\\{`, `\\}` and `\\`` insert the
        delimiter characters literally; other escapes behave as in strings.
        """
        start = self._location()
        self._advance()  # consume opening backquote

        fragments: List[TemplateFragment] = []
        chars: List[str] = []

        while True:
            if self._is_at_end():
                raise error_unterminated_template(
                    self._span(start), self.get_source_line(start.line)
                )
            ch = self._peek()
            if ch == '`':
                self._advance()
                break
            if ch == '\\':
                self._advance()
                if self._peek() in '{}`':
                    chars.append(self._advance())
                else:
                    chars.append(self._scan_escape_sequence())
            elif ch == '{':
                if chars:
                    fragments.append(TemplateFragment(''.join(chars)))
                    chars = []
                fragments.append(self._scan_placeholder(start))
            else:
                chars.append(self._advance())

        if chars:
            fragments.append(TemplateFragment(''.join(chars)))
        return self._make_token(TokenType.TEMPLATE, tuple(fragments), start)

    def _scan_placeholder(self, template_start: SourceLocation) -> TemplateFragment:
        start = self._location()
        self._advance()  # consume '{'
        chars = []
        while self._peek() != '}':
            if self._is_at_end() or self._peek() == '`':
                raise error_unterminated_template(
                    self._span(template_start), self.get_source_line(template_start.line)
                )
            chars.append(self._advance())
        self._advance()  # consume '}'

        text = ''.join(chars)
        name = text.strip()
        if not _is_identifier(name):
            raise error_invalid_placeholder(
                text, self._span(start), self.get_source_line(start.line)
            )
        return TemplateFragment(name, is_identifier=True)

    def _scan_number(self) -> Token:
        """Scan an integer literal."""
        start = self._location()

        # Check for hex or binary prefix
        if self._peek() == '0':
            if self._peek(1) in 'xX':
                self._advance()
                return self._scan_prefixed_number(start, HEX_DIGITS, 16, error_invalid_hex_literal)
            if self._peek(1) in 'bB':
                self._advance()
                return self._scan_prefixed_number(start, '01', 2, error_invalid_binary_literal)

        while self._peek().isdigit():
            self._advance()

        # 12abc is a malformed literal, not an integer followed by a name
        if self._peek().isalpha() or self._peek() == '_':
            while self._peek().isalnum() or self._peek() == '_':
                self._advance()
            lexeme = self.source[start.offset:self.pos]
            raise error_invalid_number_literal(
                lexeme, self._span(start), self.get_source_line(start.line)
            )

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.INT_LITERAL, int(lexeme), start, lexeme)

    def _scan_prefixed_number(self, start: SourceLocation, digits: str, base: int,
                              make_error) -> Token:
        """Scan the digits of a 0x or 0b literal, allowing `_` separators."""
        self._advance()  # consume 'x' or 'b'

        if self._peek() not in digits or self._is_at_end():
            lexeme = self.source[start.offset:self.pos]
            raise make_error(lexeme, self._span(start), self.get_source_line(start.line))

        while (self._peek() in digits or self._peek() == '_') and not self._is_at_end():
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        if self._peek().isalnum():
            raise make_error(lexeme + self._peek(), self._span(start),
                             self.get_source_line(start.line))
        return self._make_token(TokenType.INT_LITERAL, int(lexeme[2:].replace('_', ''), base),
                                start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        token_type = lookup_identifier(lexeme)
        if token_type == TokenType.BOOL_LITERAL:
            return self._make_token(token_type, lexeme == 'true', start, lexeme)
        return self._make_token(token_type, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if ch == '"':
            return self._scan_string()

        if ch == '`':
            return self._scan_template()

        if ch.isdigit():
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)
        if ch == '<' and self._match('='):
            return self._make_token(TokenType.LE, "<=", start)
        if ch == '>' and self._match('='):
            return self._make_token(TokenType.GE, ">=", start)

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def _is_identifier(text: str) -> bool:
    return bool(text) and (text[0].isalpha() or text[0] == '_') and \
        all(c.isalnum() or c == '_' for c in text)


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
