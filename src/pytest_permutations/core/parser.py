"""Specification parser.

This module turns specification text into a validated `Specification`.
Two surface syntaxes are supported:

- the block syntax::

      title doubles_example;
      let a = A1 or A2 or A3;
      let b = B10 or B20;
      when result = { some_code(a, b) }
      then { assert result == 2 * a + 4 * b }

- an equivalent structured YAML document with `title`, `let`, `when`
  and `then` keys.

Parsing is all-or-nothing: any failure raises and no partial
specification is returned.
"""

from keyword import iskeyword
from typing import TYPE_CHECKING, Literal

from pydantic import ValidationError
from yaml import BaseLoader, YAMLError, load
from yaml.error import MarkedYAMLError

from pytest_permutations.errors import ErrorContext, SpecSemanticError, SpecSyntaxError
from pytest_permutations.schema import SpecDocument, Specification

from .lexer import Scanner, Token

if TYPE_CHECKING:
    from io import TextIOBase
    from typing import Any

#: Supported surface syntaxes.
type Syntax = Literal['block', 'yaml']


class SpecParser:
    """Parser for specification sources.

    The parser holds only its configuration; every call works on its
    own scanner, so one parser may be reused for any number of sources.
    """

    def __init__(self, *, filename: str | None = None) -> None:
        """Initialize the parser.

        Args:
            filename: Name of the source, used in error messages.
        """
        self.filename = filename

    def parse(self, content: 'TextIOBase | str', *,
              syntax: Syntax = 'block') -> Specification:
        """Parse a specification.

        Args:
            content: Specification text as a string or file-like object.
            syntax: Surface syntax of the content.

        Returns:
            The validated specification.

        Raises:
            SpecSyntaxError: If the content violates the grammar.
            SpecSemanticError: If the content is well-formed but
                not a meaningful specification.
        """
        if not isinstance(content, str):
            content = content.read()

        if syntax == 'yaml':
            return self.parse_yaml(content)

        return self.parse_block(content)

    def parse_block(self, source: str) -> Specification:
        """Parse a specification written in the block syntax.

        Args:
            source: Specification text.

        Returns:
            The validated specification.

        Raises:
            SpecSyntaxError: If the text violates the grammar.
            SpecSemanticError: If a variable is declared twice, a value
                list is empty, a clause is missing, or a value or keyword
                is used where an identifier is required.
        """
        scanner = Scanner(source, filename=self.filename)

        self._expect_keyword(scanner, 'title')
        title = self._expect_identifier(scanner, 'title')
        self._expect_symbol(scanner, ';')

        variables: dict[str, list[str]] = {}
        while self._is_keyword(scanner.peek(), 'let'):
            scanner.next_token()
            name = self._expect_identifier(scanner, 'variable name')
            if name.text in variables:
                raise self._semantic_error(
                    f'Variable {name.text!r} is declared more than once',
                    name, scanner,
                )
            self._expect_symbol(scanner, '=')
            variables[name.text] = self._parse_values(scanner, name)
            self._expect_symbol(scanner, ';')

        if not variables:
            raise self._semantic_error(
                'Specification must declare at least one variable',
                scanner.peek(), scanner,
            )

        self._expect_clause(scanner, 'when')
        result = self._expect_identifier(scanner, 'result name')
        if result.text in variables:
            raise self._semantic_error(
                f'Result name {result.text!r} shadows a variable',
                result, scanner,
            )
        self._expect_symbol(scanner, '=')
        run = self._expect_block(scanner, 'when')

        self._expect_clause(scanner, 'then')
        check = self._expect_block(scanner, 'then')

        if (token := scanner.next_token()).kind != 'eof':
            raise self._syntax_error(
                f'Unexpected {token.describe()} after then clause',
                token, scanner,
            )

        return self._validate({
            'title': title.text,
            'variables': [
                {'name': name, 'values': values}
                for name, values in variables.items()
            ],
            'run': {'source': run.text},
            'run_result_name': result.text,
            'check': {'source': check.text},
        })

    def parse_yaml(self, source: str) -> Specification:
        """Parse a specification written as a structured YAML document.

        All scalars are loaded as opaque text.

        Args:
            source: YAML text.

        Returns:
            The validated specification.

        Raises:
            SpecSyntaxError: If the text is not valid YAML.
            SpecSemanticError: If the document is not a valid specification.
        """
        try:
            document = load(source, Loader=BaseLoader)  # noqa: S506

        except MarkedYAMLError as base:
            raise SpecSyntaxError.from_yaml_error(base, filename=self.filename) from base

        except YAMLError as base:
            raise SpecSyntaxError(
                'Invalid YAML',
                context=ErrorContext(filename=self.filename, error=base),
            ) from base

        try:
            return SpecDocument.model_validate(document).to_specification()

        except ValidationError as base:
            raise SpecSemanticError.from_pydantic_error(
                base,
                data=document,
                filename=self.filename,
            ) from base

    def _validate(self, data: 'dict[str, Any]') -> Specification:
        try:
            return Specification.model_validate(data)

        except ValidationError as base:
            raise SpecSemanticError.from_pydantic_error(
                base,
                data=data,
                filename=self.filename,
            ) from base

    def _parse_values(self, scanner: Scanner, name: Token) -> list[str]:
        """Parse a value list: `ValueExpr ( "or" ValueExpr )*`."""
        token = scanner.scan_value()
        if not token.text:
            raise self._semantic_error(
                f'Empty value list for variable {name.text!r}',
                token, scanner,
            )

        values = [token.text]
        while self._is_keyword(scanner.peek(), 'or'):
            scanner.next_token()
            token = scanner.scan_value()
            if not token.text:
                raise self._syntax_error("Missing value after 'or'", token, scanner)
            values.append(token.text)

        return values

    def _expect_keyword(self, scanner: Scanner, keyword: str) -> Token:
        token = scanner.next_token()
        if not self._is_keyword(token, keyword):
            raise self._syntax_error(
                f'Expected {keyword!r}, got {token.describe()}',
                token, scanner,
            )

        return token

    def _expect_clause(self, scanner: Scanner, keyword: str) -> Token:
        """Consume a clause keyword, reporting a missing clause as semantic."""
        token = scanner.peek()
        if token.kind == 'eof' or (keyword == 'when' and self._is_keyword(token, 'then')):
            raise self._semantic_error(f'Missing {keyword} clause', token, scanner)

        return self._expect_keyword(scanner, keyword)

    def _expect_symbol(self, scanner: Scanner, symbol: str) -> Token:
        token = scanner.next_token()
        if token.kind != 'symbol' or token.text != symbol:
            raise self._syntax_error(
                f'Expected {symbol!r}, got {token.describe()}',
                token, scanner,
            )

        return token

    def _expect_identifier(self, scanner: Scanner, role: str) -> Token:
        token = scanner.next_token()
        if token.kind == 'identifier':
            if iskeyword(token.text):
                raise self._semantic_error(
                    f'Python keyword {token.text!r} can not be used as {role}',
                    token, scanner,
                )
            return token

        if token.kind == 'value':
            raise self._semantic_error(
                f'Expected identifier for {role}, got value {token.text!r}',
                token, scanner,
            )

        raise self._syntax_error(
            f'Expected {role}, got {token.describe()}',
            token, scanner,
        )

    def _expect_block(self, scanner: Scanner, clause: str) -> Token:
        token = scanner.next_token()
        if token.kind != 'block':
            raise self._syntax_error(
                f'Expected code block for {clause} clause, got {token.describe()}',
                token, scanner,
            )

        return token

    @staticmethod
    def _is_keyword(token: Token, keyword: str) -> bool:
        return token.kind == 'keyword' and token.text == keyword

    def _syntax_error(self, message: str, token: Token, scanner: Scanner) -> SpecSyntaxError:
        return SpecSyntaxError.from_token(
            message,
            token,
            source=scanner.source,
            filename=self.filename,
        )

    def _semantic_error(self, message: str, token: Token, scanner: Scanner) -> SpecSemanticError:
        return SpecSemanticError.from_token(
            message,
            token,
            source=scanner.source,
            filename=self.filename,
        )
