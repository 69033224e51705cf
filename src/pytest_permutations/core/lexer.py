"""Scanner for the specification block syntax.

The block syntax mixes a handful of keywords and separators with opaque
Python fragments: value expressions and brace-delimited code blocks.
The scanner is therefore driven by the parser, which asks either for
the next plain token or for a value expression, depending on where it
is in the grammar.

Opaque fragments are never interpreted. The scanner only tracks string
literals, comments and bracket nesting to find where a fragment ends.
"""

from re import ASCII
from re import compile as regexp
from typing import Literal, NamedTuple

from pytest_permutations.errors import SpecSyntaxError

#: Reserved words of the block syntax.
KEYWORDS = frozenset({'title', 'let', 'or', 'when', 'then'})

#: Single-character separators.
SYMBOLS = frozenset({'=', ';'})

#: Opening brackets mapped to their closing counterparts.
BRACKETS = {'(': ')', '[': ']', '{': '}'}

#: Quote sequences, longest first.
QUOTES = ('"""', "'''", '"', "'")

_WORD = regexp(r'[A-Za-z_][A-Za-z0-9_]*', flags=ASCII)

#: Characters ending a stray value token in plain token mode.
_VALUE_STOP = frozenset({'=', ';', '{', '}', '#'})

type TokenKind = Literal['keyword', 'identifier', 'symbol', 'value', 'block', 'eof']


class Token(NamedTuple):
    """Lexical token with its position in the source.

    Lines and columns are zero-based.
    """

    kind: TokenKind
    text: str
    line: int
    column: int
    offset: int

    def describe(self) -> str:
        """Human-readable token description for error messages."""
        if self.kind == 'eof':
            return 'end of input'
        if self.kind == 'block':
            return 'code block'

        return repr(self.text)


class Scanner:
    """Position-tracking scanner over one specification source.

    A scanner is created for each parse and discarded afterwards.
    """

    def __init__(self, source: str, *, filename: str | None = None) -> None:
        """Initialize the scanner.

        Args:
            source: Specification text.
            filename: Name of the source file, for error messages.
        """
        self.source = source
        self.filename = filename
        self.offset = 0

    def make_token(self, kind: TokenKind, text: str, offset: int) -> Token:
        """Build a token, computing its line and column from an offset."""
        line = self.source.count('\n', 0, offset)
        column = offset - (self.source.rfind('\n', 0, offset) + 1)

        return Token(kind, text, line, column, offset)

    def error(self, message: str, offset: int) -> SpecSyntaxError:
        """Build a syntax error located at an offset."""
        return SpecSyntaxError.from_token(
            message,
            self.make_token('value', '', offset),
            source=self.source,
            filename=self.filename,
        )

    def skip_trivia(self) -> None:
        """Skip whitespace and comments."""
        while self.offset < len(self.source):
            char = self.source[self.offset]
            if char.isspace():
                self.offset += 1
            elif char == '#':
                self.offset = self._line_end(self.offset)
            else:
                break

    def peek(self) -> Token:
        """Return the next plain token without consuming it."""
        offset = self.offset
        try:
            return self.next_token()
        finally:
            self.offset = offset

    def next_token(self) -> Token:
        """Consume and return the next plain token.

        Returns:
            A keyword, identifier, separator, code block, or end-of-input
            token. Anything else is returned as a `value` token so the
            parser can report it.

        Raises:
            SpecSyntaxError: If a code block is not terminated.
        """
        self.skip_trivia()
        start = self.offset

        if start >= len(self.source):
            return self.make_token('eof', '', start)

        char = self.source[start]
        if char in SYMBOLS:
            self.offset += 1
            return self.make_token('symbol', char, start)

        if char == '{':
            return self.scan_block()

        if match := _WORD.match(self.source, start):
            self.offset = match.end()
            word = match.group()
            return self.make_token('keyword' if word in KEYWORDS else 'identifier', word, start)

        end = start + 1
        while end < len(self.source) and not self.source[end].isspace() \
                and self.source[end] not in _VALUE_STOP:
            end += 1

        self.offset = end
        return self.make_token('value', self.source[start:end], start)

    def scan_block(self) -> Token:
        """Consume a brace-delimited code block.

        Nested braces are counted; braces inside string literals and
        comments are ignored.

        Returns:
            A `block` token whose text is the verbatim block content
            without the enclosing braces.

        Raises:
            SpecSyntaxError: If the block or a string inside it is not
                terminated.
        """
        start = self.offset
        depth = 0
        position = start

        while position < len(self.source):
            char = self.source[position]
            if char in '"\'':
                position = self._skip_string(position)
                continue
            if char == '#':
                position = self._line_end(position)
                continue

            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    self.offset = position + 1
                    return self.make_token('block', self.source[start + 1:position], start)

            position += 1

        raise self.error('Unterminated code block', start)

    def scan_value(self) -> Token:
        """Consume one value expression.

        The expression extends up to the next `;` or standalone reserved
        word outside brackets and string literals, so `or` separates values
        and a missing `;` is reported before the next clause. Comments
        are dropped.

        Returns:
            A `value` token with the stripped expression text, which is
            empty when no expression is present.

        Raises:
            SpecSyntaxError: If brackets are unbalanced or a string
                is not terminated.
        """
        self.skip_trivia()
        start = position = segment = self.offset
        parts: list[str] = []
        stack: list[tuple[str, int]] = []

        while position < len(self.source):
            char = self.source[position]
            if char in '"\'':
                position = self._skip_string(position)
                continue
            if char == '#':
                parts.append(self.source[segment:position])
                position = segment = self._line_end(position)
                continue

            if char in BRACKETS:
                stack.append((BRACKETS[char], position))
            elif char in BRACKETS.values():
                if not stack or stack.pop()[0] != char:
                    raise self.error(f'Unbalanced {char!r} in value expression', position)
            elif not stack:
                if char == ';':
                    break
                if match := _WORD.match(self.source, position):
                    # attribute access such as `Color.title` is not a keyword
                    if match.group() in KEYWORDS and self.source[position - 1:position] != '.':
                        break
                    position = match.end()
                    continue

            position += 1

        if stack:
            _, opened = stack[-1]
            raise self.error('Unclosed bracket in value expression', opened)

        parts.append(self.source[segment:position])
        self.offset = position

        return self.make_token('value', ''.join(parts).strip(), start)

    def _line_end(self, offset: int) -> int:
        end = self.source.find('\n', offset)
        if end < 0:
            return len(self.source)

        return end

    def _skip_string(self, offset: int) -> int:
        """Return the offset just past the string literal starting at `offset`.

        Raises:
            SpecSyntaxError: If the literal is not terminated.
        """
        quote = next(item for item in QUOTES if self.source.startswith(item, offset))
        position = offset + len(quote)

        while position < len(self.source):
            char = self.source[position]
            if char == '\\':
                position += 2
                continue
            if self.source.startswith(quote, position):
                return position + len(quote)
            if char == '\n' and len(quote) == 1:
                break
            position += 1

        raise self.error('Unterminated string literal', offset)
