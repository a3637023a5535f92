"""Tokenize Swift declaration source."""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from swift_mock_generator.errors import ParseError

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    ATTRIBUTE = "attribute"  # @escaping, @objc, ...
    PUNCTUATION = "punctuation"
    OPERATOR = "operator"
    STRING = "string"
    NUMBER = "number"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    line: int
    newline_before: bool = False  # a line break separates this token from the previous one

    def is_(self, value: str) -> bool:
        return self.value == value and self.kind not in (TokenKind.STRING, TokenKind.EOF)


KEYWORDS = frozenset(
    {
        "associatedtype",
        "class",
        "func",
        "init",
        "inout",
        "let",
        "protocol",
        "static",
        "subscript",
        "typealias",
        "var",
        "where",
        "throws",
        "rethrows",
    }
)

# Alternation order matters: multi-character tokens before single punctuation
TOKEN_PATTERN = re.compile(
    r"""
    (?P<identifier>`[^`\n]+`|(?:[^\W\d]|\$)[\w$]*)
    |(?P<attribute>@[^\W\d]\w*)
    |(?P<number>\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?)
    |(?P<arrow>->)
    |(?P<ellipsis>\.\.\.)
    |(?P<compound>==|&&|\|\|)
    |(?P<punctuation>[(){}\[\]<>,:;.=&])
    |(?P<operator>[?!#+\-*/%|^~])
    """,
    re.VERBOSE,
)


def tokenize(source: str) -> list[Token]:
    """Split Swift source into tokens, dropping comments and whitespace.

    Args:
        source: Swift source text

    Returns:
        List of tokens, terminated by an EOF token

    Raises:
        ParseError: On unterminated comments or strings, or unknown characters
    """
    tokens: list[Token] = []
    position = 0
    line = 1
    newline_before = False
    length = len(source)

    while position < length:
        char = source[position]

        if char == "\n":
            line += 1
            newline_before = True
            position += 1
            continue
        if char.isspace():
            position += 1
            continue

        if source.startswith("//", position):
            end = source.find("\n", position)
            position = length if end == -1 else end
            continue

        if source.startswith("/*", position):
            end = _skip_block_comment(source, position, line)
            line += source.count("\n", position, end)
            newline_before = newline_before or "\n" in source[position:end]
            position = end
            continue

        if char == '"':
            end = _skip_string(source, position, line)
            tokens.append(
                Token(TokenKind.STRING, source[position:end], line, newline_before)
            )
            line += source.count("\n", position, end)
            newline_before = False
            position = end
            continue

        match = TOKEN_PATTERN.match(source, position)
        if match is None:
            raise ParseError(f"Unexpected character {char!r}", line=line)

        value = match.group(0)
        group = match.lastgroup
        if group == "identifier":
            kind = TokenKind.KEYWORD if value in KEYWORDS else TokenKind.IDENTIFIER
        elif group == "attribute":
            kind = TokenKind.ATTRIBUTE
        elif group == "number":
            kind = TokenKind.NUMBER
        elif group == "punctuation":
            kind = TokenKind.PUNCTUATION
        else:
            kind = TokenKind.OPERATOR

        tokens.append(Token(kind, value, line, newline_before))
        newline_before = False
        position = match.end()

    tokens.append(Token(TokenKind.EOF, "", line, newline_before))
    logger.debug(f"Tokenized {len(tokens) - 1} tokens over {line} lines")
    return tokens


def _skip_block_comment(source: str, start: int, line: int) -> int:
    """Return the index just past a (possibly nested) block comment."""
    depth = 0
    position = start
    while position < len(source):
        if source.startswith("/*", position):
            depth += 1
            position += 2
        elif source.startswith("*/", position):
            depth -= 1
            position += 2
            if depth == 0:
                return position
        else:
            position += 1
    raise ParseError("Unterminated block comment", line=line)


def _skip_string(source: str, start: int, line: int) -> int:
    """Return the index just past a string literal starting at ``start``."""
    if source.startswith('"""', start):
        end = source.find('"""', start + 3)
        if end == -1:
            raise ParseError("Unterminated multi-line string literal", line=line)
        return end + 3

    position = start + 1
    while position < len(source):
        char = source[position]
        if char == "\\":
            position += 2
            continue
        if char == '"':
            return position + 1
        if char == "\n":
            break
        position += 1
    raise ParseError("Unterminated string literal", line=line)


CLOSERS = {"(": ")", "[": "]", "{": "}", "<": ">"}


class TokenStream:
    """Cursor over a token list with error reporting context."""

    def __init__(self, tokens: list[Token], interface: str | None = None):
        self._tokens = tokens
        self.position = 0
        self.interface = interface
        self.method: str | None = None

    def peek(self, offset: int = 0) -> Token:
        index = min(self.position + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind is not TokenKind.EOF:
            self.position += 1
        return token

    @property
    def at_end(self) -> bool:
        return self.peek().kind is TokenKind.EOF

    def at(self, *values: str) -> bool:
        token = self.peek()
        return any(token.is_(value) for value in values)

    def accept(self, value: str) -> Token | None:
        if self.at(value):
            return self.advance()
        return None

    def expect(self, value: str, context: str) -> Token:
        if not self.at(value):
            found = self.peek().value or "end of input"
            raise self.error(f"Expected '{value}' {context}, found '{found}'")
        return self.advance()

    def expect_identifier(self, context: str) -> Token:
        token = self.peek()
        if token.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            found = token.value or "end of input"
            raise self.error(f"Expected a name {context}, found '{found}'")
        return self.advance()

    def error(self, message: str, line: int | None = None) -> ParseError:
        return ParseError(
            message,
            interface=self.interface,
            method=self.method,
            line=line if line is not None else self.peek().line,
        )

    def take_balanced(self) -> list[Token]:
        """Consume a bracketed group and return the tokens inside it.

        The current token must be an opening bracket. Nested brackets of every
        kind must balance, except that '<' and '>' are only tracked when the
        group itself is angle-bracketed.
        """
        opener = self.advance()
        start_line = opener.line
        closer = CLOSERS[opener.value]
        stack = [closer]
        inner: list[Token] = []

        while stack:
            token = self.advance()
            if token.kind is TokenKind.EOF:
                raise self.error(f"Unbalanced '{opener.value}'", line=start_line)
            if token.kind in (TokenKind.STRING, TokenKind.NUMBER):
                inner.append(token)
                continue
            if token.value in CLOSERS and (token.value != "<" or closer == ">"):
                stack.append(CLOSERS[token.value])
            elif token.value in (")", "]", "}") or (token.value == ">" and closer == ">"):
                if token.value != stack[-1]:
                    raise self.error(
                        f"Mismatched '{token.value}', expected '{stack[-1]}'",
                        line=token.line,
                    )
                stack.pop()
                if not stack:
                    break
            inner.append(token)

        return inner
