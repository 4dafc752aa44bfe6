"""
Pratt parser for the Monkey language.

Converts a token stream into an Abstract Syntax Tree (AST).
"""

from typing import List, Optional, Callable, Dict
from .tokens import Token, TokenType, SourceSpan
from .ast import (
    # Expressions
    Expression, Identifier, IntegerLiteral, BooleanLiteral, StringLiteral,
    TemplateString, ArrayLiteral, HashLiteral, PrefixExpression, InfixExpression,
    IfExpression, FunctionLiteral, MacroLiteral, CallExpression, IndexExpression,
    # Statements
    Statement, LetStatement, ReturnStatement, ExpressionStatement, Block,
    Program,
)
from .errors import (
    error_unexpected_token,
    error_unexpected_eof,
    error_no_prefix_parser,
    error_integer_out_of_range,
)


# Precedence levels (higher = tighter binding)
LOWEST = 0
LOGICAL_OR = 1
LOGICAL_AND = 2
EQUALS = 3
COMPARE = 4
SUM = 5
PRODUCT = 6
PREFIX = 7
CALL = 8
INDEX = 9

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

TOKEN_DESCRIPTIONS = {
    TokenType.ASSIGN: "'='",
    TokenType.COLON: "':'",
    TokenType.COMMA: "','",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.LBRACE: "'{'",
    TokenType.RBRACE: "'}'",
    TokenType.RBRACKET: "']'",
}


class Parser:
    """
    Pratt parser for Monkey programs.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()

    Binding power, lowest to highest:
        Lowest:  |
                 &
                 == !=
                 < > <= >=
                 + -
                 * / %
                 prefix (! -)
                 call f(x)
        Highest: index a[i]
    """

    # Operator precedence levels for tokens in infix position
    PRECEDENCE = {
        TokenType.OR: LOGICAL_OR,
        TokenType.AND: LOGICAL_AND,
        TokenType.EQ: EQUALS,
        TokenType.NE: EQUALS,
        TokenType.LT: COMPARE,
        TokenType.GT: COMPARE,
        TokenType.LE: COMPARE,
        TokenType.GE: COMPARE,
        TokenType.PLUS: SUM,
        TokenType.MINUS: SUM,
        TokenType.STAR: PRODUCT,
        TokenType.SLASH: PRODUCT,
        TokenType.PERCENT: PRODUCT,
        TokenType.LPAREN: CALL,
        TokenType.LBRACKET: INDEX,
    }

    def __init__(self, tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source  # Original source code for error excerpts
        self.pos = 0

        self.prefix_parsers: Dict[TokenType, Callable[[], Expression]] = {
            TokenType.IDENTIFIER: self._parse_identifier,
            TokenType.INT_LITERAL: self._parse_integer,
            TokenType.BOOL_LITERAL: self._parse_boolean,
            TokenType.STRING_LITERAL: self._parse_string,
            TokenType.TEMPLATE: self._parse_template,
            TokenType.BANG: self._parse_prefix,
            TokenType.MINUS: self._parse_prefix,
            TokenType.LPAREN: self._parse_grouped,
            TokenType.IF: self._parse_if,
            TokenType.FN: self._parse_function,
            TokenType.MACRO: self._parse_macro,
            TokenType.LBRACKET: self._parse_array,
            TokenType.LBRACE: self._parse_hash,
        }
        self.infix_parsers: Dict[TokenType, Callable[[Expression], Expression]] = {
            TokenType.LPAREN: self._parse_call,
            TokenType.LBRACKET: self._parse_index,
        }
        for token_type in self.PRECEDENCE:
            self.infix_parsers.setdefault(token_type, self._parse_infix)

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, token: Token) -> Optional[str]:
        if self.source is None:
            return None
        lines = self.source.splitlines()
        line = token.span.start.line
        if 1 <= line <= len(lines):
            return lines[line - 1]
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error."""
        token = self._current()
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(expected, token.type.name, token.span,
                                     self._source_line(token))

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Statements
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse a complete program."""
        start = self._current()
        statements = []
        while not self._is_at_end():
            statements.append(self._parse_statement())
        return Program(self._span_from(start) if statements else start.span, statements)

    def _parse_statement(self) -> Statement:
        if self._check(TokenType.LET):
            stmt = self._parse_let()
        elif self._check(TokenType.RETURN):
            stmt = self._parse_return()
        else:
            start = self._current()
            expr = self._parse_expression(LOWEST)
            stmt = ExpressionStatement(self._span_from(start), expr)
        self._match(TokenType.SEMICOLON)
        return stmt

    def _parse_let(self) -> LetStatement:
        """Parse: let name = expr"""
        start = self._advance()  # consume 'let'
        name_tok = self._consume(TokenType.IDENTIFIER, "IDENTIFIER")
        name = Identifier(name_tok.span, name_tok.value)
        self._consume(TokenType.ASSIGN, TOKEN_DESCRIPTIONS[TokenType.ASSIGN])
        value = self._parse_expression(LOWEST)
        return LetStatement(self._span_from(start), name, value)

    def _parse_return(self) -> ReturnStatement:
        start = self._advance()  # consume 'return'
        value = self._parse_expression(LOWEST)
        return ReturnStatement(self._span_from(start), value)

    def _parse_block(self) -> Block:
        """Parse: { statement* }"""
        start = self._consume(TokenType.LBRACE, TOKEN_DESCRIPTIONS[TokenType.LBRACE])
        statements = []
        while not self._check(TokenType.RBRACE):
            if self._is_at_end():
                self._error(TOKEN_DESCRIPTIONS[TokenType.RBRACE])
            statements.append(self._parse_statement())
        self._advance()  # consume '}'
        return Block(self._span_from(start), statements)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self, precedence: int) -> Expression:
        token = self._current()
        prefix = self.prefix_parsers.get(token.type)
        if prefix is None:
            if token.type == TokenType.EOF:
                raise error_unexpected_eof("expression", token.span)
            raise error_no_prefix_parser(token.type.name, token.span, self._source_line(token))
        left = prefix()

        while precedence < self.PRECEDENCE.get(self._current().type, LOWEST):
            infix = self.infix_parsers[self._current().type]
            left = infix(left)
        return left

    def _parse_identifier(self) -> Expression:
        token = self._advance()
        return Identifier(token.span, token.value)

    def _parse_integer(self) -> Expression:
        token = self._advance()
        if not INT64_MIN <= token.value <= INT64_MAX:
            raise error_integer_out_of_range(token.lexeme, token.span, self._source_line(token))
        return IntegerLiteral(token.span, token.value)

    def _parse_boolean(self) -> Expression:
        token = self._advance()
        return BooleanLiteral(token.span, token.value)

    def _parse_string(self) -> Expression:
        """Parse one string literal, joining any adjacent string literals."""
        start = self._advance()
        parts = [start.value]
        while self._check(TokenType.STRING_LITERAL):
            parts.append(self._advance().value)
        return StringLiteral(self._span_from(start), "".join(parts))

    def _parse_template(self) -> Expression:
        token = self._advance()
        parts: List[Expression] = []
        for fragment in token.value:
            if fragment.is_identifier:
                parts.append(Identifier(token.span, fragment.text))
            else:
                parts.append(StringLiteral(token.span, fragment.text))
        return TemplateString(token.span, parts)

    def _parse_prefix(self) -> Expression:
        start = self._advance()
        right = self._parse_expression(PREFIX)
        return PrefixExpression(self._span_from(start), start.lexeme, right)

    def _parse_infix(self, left: Expression) -> Expression:
        op = self._advance()
        right = self._parse_expression(self.PRECEDENCE[op.type])
        return InfixExpression(SourceSpan(left.span.start, right.span.end), left, op.lexeme, right)

    def _parse_grouped(self) -> Expression:
        self._advance()  # consume '('
        expr = self._parse_expression(LOWEST)
        self._consume(TokenType.RPAREN, TOKEN_DESCRIPTIONS[TokenType.RPAREN])
        return expr

    def _parse_if(self) -> Expression:
        """Parse: if cond { ... } [else { ... }]"""
        start = self._advance()  # consume 'if'
        condition = self._parse_expression(LOWEST)
        consequence = self._parse_block()
        alternative = None
        if self._match(TokenType.ELSE):
            alternative = self._parse_block()
        return IfExpression(self._span_from(start), condition, consequence, alternative)

    def _parse_function(self) -> Expression:
        """Parse: fn(a, b) { ... }"""
        start = self._advance()  # consume 'fn'
        self._consume(TokenType.LPAREN, TOKEN_DESCRIPTIONS[TokenType.LPAREN])
        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._match(TokenType.COMMA):
                parameters.append(self._parse_parameter())
        self._consume(TokenType.RPAREN, TOKEN_DESCRIPTIONS[TokenType.RPAREN])
        body = self._parse_block()
        return FunctionLiteral(self._span_from(start), parameters, body)

    def _parse_macro(self) -> Expression:
        """Parse: macro(name: pattern, ...) { ... }"""
        start = self._advance()  # consume 'macro'
        self._consume(TokenType.LPAREN, TOKEN_DESCRIPTIONS[TokenType.LPAREN])
        parameters = []
        patterns = []
        if not self._check(TokenType.RPAREN):
            while True:
                parameters.append(self._parse_parameter())
                self._consume(TokenType.COLON, TOKEN_DESCRIPTIONS[TokenType.COLON])
                patterns.append(self._parse_expression(LOWEST))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RPAREN, TOKEN_DESCRIPTIONS[TokenType.RPAREN])
        body = self._parse_block()
        return MacroLiteral(self._span_from(start), parameters, patterns, body)

    def _parse_parameter(self) -> Identifier:
        token = self._consume(TokenType.IDENTIFIER, "IDENTIFIER")
        return Identifier(token.span, token.value)

    def _parse_expression_list(self, end: TokenType) -> List[Expression]:
        """Parse comma-separated expressions up to `end`; a trailing comma is allowed."""
        items = []
        while not self._check(end):
            items.append(self._parse_expression(LOWEST))
            if not self._match(TokenType.COMMA):
                break
        self._consume(end, TOKEN_DESCRIPTIONS[end])
        return items

    def _parse_array(self) -> Expression:
        start = self._advance()  # consume '['
        elements = self._parse_expression_list(TokenType.RBRACKET)
        return ArrayLiteral(self._span_from(start), elements)

    def _parse_hash(self) -> Expression:
        """Parse: { key: value, ... }"""
        start = self._advance()  # consume '{'
        pairs = []
        while not self._check(TokenType.RBRACE):
            key = self._parse_expression(LOWEST)
            self._consume(TokenType.COLON, TOKEN_DESCRIPTIONS[TokenType.COLON])
            value = self._parse_expression(LOWEST)
            pairs.append((key, value))
            if not self._match(TokenType.COMMA):
                break
        self._consume(TokenType.RBRACE, TOKEN_DESCRIPTIONS[TokenType.RBRACE])
        return HashLiteral(self._span_from(start), pairs)

    def _parse_call(self, function: Expression) -> Expression:
        self._advance()  # consume '('
        arguments = self._parse_expression_list(TokenType.RPAREN)
        return CallExpression(SourceSpan(function.span.start, self._peek(-1).span.end),
                              function, arguments)

    def _parse_index(self, left: Expression) -> Expression:
        self._advance()  # consume '['
        index = self._parse_expression(LOWEST)
        self._consume(TokenType.RBRACKET, TOKEN_DESCRIPTIONS[TokenType.RBRACKET])
        return IndexExpression(SourceSpan(left.span.start, self._peek(-1).span.end), left, index)


def parse(tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None) -> Program:
    """
    Convenience function to parse tokens into a Program.

    Args:
        tokens: List of tokens from lexer
        filename: Optional filename for error messages
        source: Optional source text, used for error excerpts

    Returns:
        Parsed Program AST

    Raises:
        ParserError: If parsing fails
    """
    parser = Parser(tokens, filename, source)
    return parser.parse_program()
