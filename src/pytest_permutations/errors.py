"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report specification parsing failures, name synthesis conflicts, and
generated unit compilation errors in a structured and extensible way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

if TYPE_CHECKING:
    from typing import Self

if TYPE_CHECKING:
    from pydantic import ValidationError
    from pydantic_core import ErrorDetails

if TYPE_CHECKING:
    from pytest_permutations.core.lexer import Token

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2
SNIPPET_CARET = '^'

FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    This structure aggregates optional metadata that may be available
    at different stages of parsing, expansion, or unit compilation.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source (zero-based).
    line_num: int | None
    #: Column number in the source (zero-based).
    column_num: int | None

    #: Full source text used to render a line snippet.
    source: str | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Element associated with the error, rendered as YAML.
    element: Any


class ErrorFormatter:
    """Utility class for formatting specification errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location, a source line
    snippet pointing at the offending token, or a YAML-based snippet
    of the offending element.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line,
            and column numbers when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            line_num += 1
            message += f', line {line_num}'
            if (column_num := context.get('column_num')) is not None:
                column_num += 1
                message += f', column {column_num}'
        message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing source or element data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (error := context.get('error')) and isinstance(error, MarkedYAMLError):
            snippet = error.problem_mark.get_snippet(indent=0) if error.problem_mark else None
            return cls._make_indent(snippet or '', indent)

        source = context.get('source')
        line_num = context.get('line_num')
        if source is not None and line_num is not None:
            return cls._make_line_snippet(source, line_num, context.get('column_num'), indent)

        if element := context.get('element'):
            return cls.make_yaml_snippet(element, indent)

        return ''

    @classmethod
    def make_yaml_snippet(cls, element: Any, indent: str | int | None = None) -> str:  # noqa: ANN401
        """Build a YAML-based snippet for an element.

        Args:
            element: Element associated with the error.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted snippet string.
        """
        indent = cls._ensure_indent(indent)

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_indent(
            dump(element, indent=SNIPPET_INDENT, sort_keys=False, allow_unicode=True),
            indent,
        )
        snippet += linesep

        return snippet

    @classmethod
    def _make_line_snippet(cls, source: str, line_num: int,
                           column_num: int | None, indent: str) -> str:
        """Build a snippet of one source line with a caret marker.

        Args:
            source: Full source text.
            line_num: Zero-based line number to show.
            column_num: Zero-based column to mark, if known.
            indent: String indentation prefix.

        Returns:
            The source line followed by a caret line.
        """
        lines = source.splitlines()
        if not 0 <= line_num < len(lines):
            return ''

        snippet = f'{indent}{lines[line_num].rstrip()}{linesep}'
        if column_num is not None:
            snippet += f'{indent}{" " * column_num}{SNIPPET_CARET}{linesep}'

        return snippet

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.

        Args:
            value: Original multi-line string.
            indent: Indentation prefix.

        Returns:
            Indented string.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input.

        Args:
            indent: Indentation as string or number of spaces.

        Returns:
            A string consisting of spaces or the provided string.
        """
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class PermutationsWarning(UserWarning):
    """Warning emitted for non-fatal collection issues.

    This warning is used when an issue does not prevent expansion or
    collection (for example, two bundles sharing a title in relaxed mode).
    """


class PermutationsError(Exception, ErrorFormatter):
    """Base exception for all pytest-permutations errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context with location and snippet data.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    @classmethod
    def from_token(cls, message: str, token: 'Token', *,
                   source: str | None = None,
                   filename: str | None = None) -> 'Self':
        """Create an error instance pointing at a source token.

        Args:
            message: Human-readable error message.
            token: Token associated with the error.
            source: Full source text used to render the snippet.
            filename: Name of the source file.

        Returns:
            An initialized error with location context.
        """
        error_context = ErrorContext(
            filename=filename,
            line_num=token.line,
            column_num=token.column,
            source=source,
        )

        return cls(message, context=error_context)


class SpecSyntaxError(PermutationsError):
    """Error raised when a specification violates the grammar.

    Covers missing keywords or separators, unexpected tokens, and
    unterminated blocks, strings or brackets.
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError, *,
                        filename: str | None = None) -> 'Self':
        """Create a syntax error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Name of the source file.

        Returns:
            SpecSyntaxError representing the YAML parsing failure.
        """
        mark = error.problem_mark
        error_context = ErrorContext(
            filename=filename or (mark.name if mark else None),
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        )

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{" " * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)


class SpecSemanticError(PermutationsError):
    """Error raised when a well-formed specification is not meaningful.

    Covers duplicate variable names, empty value lists, missing clauses,
    and values used where an identifier is required.
    """

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None) -> 'Self':
        """Create a semantic error from a Pydantic validation failure.

        The message is taken from the first validation issue; the snippet
        is reduced to the smallest part of the input that caused it.

        Args:
            error: ValidationError raised by Pydantic.
            data: Validated input data.
            filename: Name of the source file.

        Returns:
            SpecSemanticError representing the validation failure.
        """
        error_context = ErrorContext(
            filename=filename,
            error=error,
            element=data,
        )

        if not data or not isinstance(data, dict):
            return cls('Type validation error', context=error_context)

        for item in error.errors(include_url=False, include_input=False):
            if located := cls._locate_pydantic_context(data, item):
                message, value = located
                return cls(message, context=ErrorContext({**error_context, 'element': value}))

        return cls('Validation error', context=error_context)

    @classmethod
    def _locate_pydantic_context(cls, value: Any,  # noqa: ANN401
                                 error: 'ErrorDetails') -> tuple[str, Any] | None:
        """Locate the most specific failing element in validated data.

        Args:
            value: Root data structure being validated.
            error: Pydantic error details including location path.

        Returns:
            A tuple of (error message, extracted element) if a relevant
            context can be located, otherwise None.
        """
        container = last_item = value
        last_key: int | str | None = None

        for key in error['loc']:
            if isinstance(last_item, (list, tuple)) and isinstance(key, int) \
                    and 0 <= key < len(last_item):
                container, last_item, last_key = last_item, last_item[key], key
            elif isinstance(last_item, dict) and key in last_item:
                container, last_item, last_key = last_item, last_item[key], key

        message = next((
            line.strip()
            for line in (error.get('msg') or '').splitlines()
            if line.strip()
        ), None)
        if not message:
            return None

        if last_key is None:
            return message, value
        if isinstance(container, (list, tuple)):
            return message, [last_item]

        return message, {last_key: last_item}


class NameCollisionError(PermutationsError):
    """Error raised when generated unit names are not unique.

    Raised when two distinct values of one variable sanitize to the same
    name token, or when two combinations produce the same unit name.
    """

    def __init__(self, message: str, *,
                 variable: str | None = None,
                 values: tuple[str, ...] = ()) -> None:
        """Initialize a name collision error.

        Args:
            message: Human-readable error description.
            variable: Variable whose values collide, if applicable.
            values: Colliding value expressions or unit names.
        """
        self.variable = variable
        self.values = values

        element: dict[str, Any] = {'values': list(values)}
        if variable:
            element = {'variable': variable, **element}

        super().__init__(message, context=ErrorContext(element=element))


class UnitCompileError(PermutationsError):
    """Error raised when a generated unit body cannot be compiled.

    This happens when a value expression or a code block is not valid
    Python source. Only the affected unit fails.
    """

    @classmethod
    def from_syntax_error(cls, error: SyntaxError, *, source: str,
                          filename: str | None = None) -> 'Self':
        """Create a compile error from a Python syntax error.

        Args:
            error: SyntaxError raised by `compile`.
            source: Generated source of the unit.
            filename: Pseudo-filename the source was compiled under.

        Returns:
            UnitCompileError pointing at the failing generated line.
        """
        error_context = ErrorContext(
            filename=filename,
            line_num=error.lineno - 1 if error.lineno else None,
            column_num=error.offset - 1 if error.offset else None,
            source=source,
            error=error,
        )

        return cls(f'Generated unit does not compile: {error.msg}', context=error_context)
