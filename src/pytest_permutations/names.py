"""Identifier rules and unit name synthesis.

This module defines the identifier patterns and strongly-typed aliases
used for titles, variable names and result names, and the synthesizer
deriving one deterministic, collision-free name per combination.

The rules defined here form part of the public contract: generated unit
names appear in pytest node identifiers and are relied upon by `-k`
selection, reports and CI tooling.
"""

from keyword import iskeyword
from re import ASCII
from re import compile as regexp
from typing import TYPE_CHECKING, Annotated

from pydantic import AfterValidator, Field

from pytest_permutations.errors import NameCollisionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pytest_permutations.schema import Combination, VariableDecl

#: Base pattern for all identifiers.
#: Identifiers follow Python naming rules restricted to ASCII.
_NAME_PATTERN = r'[A-Za-z_][A-Za-z0-9_]*'

#: Compiled pattern for identifiers.
IDENTIFIER_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Characters that are replaced when a value text becomes a name token.
_UNSAFE_CHARS = regexp(r'[^A-Za-z0-9_]+', flags=ASCII)


def is_identifier(value: str) -> bool:
    """Check whether a string may name a variable in generated code."""
    return bool(IDENTIFIER_PATTERN.match(value)) and not iskeyword(value)


def _check_identifier(value: str) -> str:
    if iskeyword(value):
        raise ValueError(f'{value!r} is a reserved Python keyword')

    return value


Identifier = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Identifier',
        description=(
            'Name of a specification title, a variable, or a run result. '
            'Identifiers must start with a letter or an underscore and may '
            'contain letters, digits, or underscores. Names are restricted '
            'to ASCII characters and must not be Python keywords.'
        ),
        examples=[
            'doubles_example',
            'userId',
            'result',
        ],
    ),
    AfterValidator(_check_identifier),
]


def sanitize(value: str, position: int = 0) -> str:
    """Map a value expression text to a name token.

    Every run of characters that are not valid in identifiers becomes
    a single underscore; leading and trailing underscores are stripped.

    Args:
        value: Value expression text.
        position: Index of the value in its value set, used when nothing
            printable remains after sanitization.

    Returns:
        A non-empty string of identifier characters.
    """
    token = _UNSAFE_CHARS.sub('_', value).strip('_')
    if not token:
        return f'v{position}'

    return token


class NameSynthesizer:
    """Derive unit names from combinations.

    The synthesizer is built for one sequence of variable declarations.
    It precomputes the name token of every value and refuses value sets
    in which two distinct values map to the same token, so that names
    derived later are unique across the whole product.

    Instances hold no state beyond the precomputed tokens; a new instance
    is built for every expansion.
    """

    def __init__(self, variables: 'Sequence[VariableDecl]', *,
                 delimiter: str = '__') -> None:
        """Initialize the synthesizer.

        Args:
            variables: Declared variables in declaration order.
            delimiter: Separator placed between the name parts.

        Raises:
            NameCollisionError: If two values of one variable produce
                the same name token.
        """
        self.delimiter = delimiter
        self.tokens: dict[str, tuple[str, ...]] = {}

        for variable in variables:
            self.tokens[variable.name] = self.tokenize(variable)

    @staticmethod
    def tokenize(variable: 'VariableDecl') -> tuple[str, ...]:
        """Compute the name tokens of a variable value set.

        Args:
            variable: Variable declaration.

        Returns:
            Name tokens in value order.

        Raises:
            NameCollisionError: If two values produce the same token.
        """
        owners: dict[str, str] = {}
        tokens = []

        for position, value in enumerate(variable.values):
            token = sanitize(value, position)
            if token in owners:
                raise NameCollisionError(
                    f'Values {owners[token]!r} and {value!r} of variable '
                    f'{variable.name!r} produce the same name {token!r}',
                    variable=variable.name,
                    values=(owners[token], value),
                )
            owners[token] = value
            tokens.append(token)

        return tuple(tokens)

    def name_for(self, combination: 'Combination') -> str:
        """Synthesize the unit name of a combination.

        Args:
            combination: Combination to name.

        Returns:
            Name parts `<variable>_<token>` joined by the delimiter,
            in declaration order.
        """
        return self.delimiter.join(
            f'{binding.name}_{self.tokens[binding.name][binding.position]}'
            for binding in combination.bindings
        )
