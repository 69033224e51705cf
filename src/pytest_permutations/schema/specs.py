"""Specification models.

This module defines the declarative elements produced by the parser:
code blocks, variable declarations, and the specification itself.
"""

from textwrap import dedent
from typing import Annotated, Self

from pydantic import Field, StringConstraints, field_validator, model_validator

from pytest_permutations.models import SchemaModel
from pytest_permutations.names import Identifier  # noqa: TC001

ValueExpr = Annotated[
    str, StringConstraints(
        strip_whitespace=True,
        min_length=1,
    ),
    Field(
        title='Value expression',
        description=(
            'Opaque Python expression bound to a variable, usually the '
            'name of a module-level constant. The expression is never '
            'evaluated during expansion; it is copied into generated units '
            'and evaluated when a unit runs.'
        ),
        examples=[
            'A1',
            'Color.RED',
            'make_user(admin=True)',
        ],
    ),
]


class CodeBlock(SchemaModel):
    """Opaque block of Python code.

    The block is captured exactly as written between its braces and is
    never parsed, evaluated or rewritten. Only its indentation is
    normalized when it is placed into a generated unit.
    """

    source: str = Field(
        default='',
        title='Block source',
        description='Verbatim text of the block, without the enclosing braces.',
    )

    @property
    def code(self) -> str:
        """Block text with surrounding blank lines and common indentation removed.

        Code written on the line of the opening brace is taken as is; the
        lines below it are dedented on their own, so the block may start
        right after the brace.
        """
        lines = self.source.splitlines()

        head = None
        if lines and lines[0].strip():
            head = lines.pop(0).strip()

        while lines and not lines[0].strip():
            lines.pop(0)
        while lines and not lines[-1].strip():
            lines.pop()

        body = dedent('\n'.join(lines)).rstrip()
        if head is None:
            return body
        if not body:
            return head

        return f'{head}\n{body}'


class VariableDecl(SchemaModel):
    """Variable declaration with its value set.

    Values are kept in declaration order; the order drives both the
    enumeration order and the name tokens of generated units.
    """

    name: Identifier = Field(
        title='Variable name',
        description='Name under which a value is visible to the run and check blocks.',
    )

    values: tuple[ValueExpr, ...] = Field(
        min_length=1,
        title='Value set',
        description='Ordered list of possible values of the variable.',
    )

    @field_validator('values', mode='before')
    @classmethod
    def wrap_single_value(cls, value: object) -> object:
        """Accept a single value expression as a one-value set."""
        if isinstance(value, str):
            return (value,)

        return value


class Specification(SchemaModel):
    """Declarative description of one parameterized scenario.

    A specification names a scenario, declares its variables, and holds
    the run and check logic shared by every combination.
    """

    title: Identifier = Field(
        title='Specification title',
        description='Name of the group collecting all generated units.',
    )

    variables: tuple[VariableDecl, ...] = Field(
        min_length=1,
        title='Variables',
        description='Declared variables in declaration order.',
    )

    run: CodeBlock = Field(
        title='Run block',
        description='Code exercising the system under test for one combination.',
    )

    run_result_name: Identifier = Field(
        title='Run result name',
        description='Name under which the run block outcome is visible to the check block.',
    )

    check: CodeBlock = Field(
        title='Check block',
        description='Code validating the captured run result for one combination.',
    )

    @model_validator(mode='after')
    def check_names(self) -> Self:
        """Check that variable and result names do not clash.

        Returns:
            Self.

        Raises:
            ValueError: If a variable is declared twice or the result
                name shadows a variable.
        """
        seen: set[str] = set()
        for variable in self.variables:
            if variable.name in seen:
                raise ValueError(f'variable `{variable.name}` is declared more than once')
            seen.add(variable.name)

        if self.run_result_name in seen:
            raise ValueError(f'result name `{self.run_result_name}` shadows a variable')

        return self


class RunClause(SchemaModel):
    """Run clause of a structured specification document."""

    name: Identifier = Field(
        title='Run result name',
        description='Name under which the run block outcome is visible to the check block.',
    )

    code: str = Field(
        default='',
        title='Run block',
        description='Code exercising the system under test for one combination.',
    )


class SpecDocument(SchemaModel):
    """Structured (YAML) form of a specification.

    Mirrors the block syntax: `let` lists the variables, `when` holds
    the result name and the run code, `then` holds the check code.
    """

    title: Identifier = Field(title='Specification title')

    let: tuple[VariableDecl, ...] = Field(
        min_length=1,
        title='Variables',
        description='Declared variables in declaration order.',
    )

    when: RunClause = Field(title='Run clause')

    then: str = Field(
        title='Check block',
        description='Code validating the captured run result for one combination.',
    )

    def to_specification(self) -> Specification:
        """Convert the document into a specification.

        Raises:
            ValidationError: If the document violates specification rules.
        """
        return Specification(
            title=self.title,
            variables=self.let,
            # YAML text starts below its key, not on a brace line
            run=CodeBlock(source=f'\n{self.when.code}'),
            run_result_name=self.when.name,
            check=CodeBlock(source=f'\n{self.then}'),
        )
