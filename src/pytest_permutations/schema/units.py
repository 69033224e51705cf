"""Combination and generated unit models.

This module defines the values produced by an expansion: combinations
of bound values, the units generated for them, and the bundle that
groups all units of one specification.
"""

from linecache import cache as source_cache
from typing import TYPE_CHECKING, Any, Self

from pydantic import Field, model_validator

from pytest_permutations.errors import UnitCompileError
from pytest_permutations.models import SchemaModel
from pytest_permutations.names import Identifier  # noqa: TC001

from .specs import CodeBlock, ValueExpr  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

#: Compiled unit callable.
type UnitCallable = Callable[[], None]


class Binding(SchemaModel):
    """One variable bound to one value of its value set."""

    name: Identifier = Field(title='Variable name')
    value: ValueExpr = Field(title='Bound value expression')
    position: int = Field(
        ge=0,
        title='Value position',
        description='Index of the value in the variable value set.',
    )


class Combination(SchemaModel):
    """Assignment of exactly one value to every declared variable."""

    index: int = Field(
        ge=0,
        title='Enumeration index',
        description='Position of the combination in enumeration order.',
    )

    bindings: tuple[Binding, ...] = Field(
        min_length=1,
        title='Bindings',
        description='One binding per declared variable, in declaration order.',
    )

    def as_dict(self) -> dict[str, str]:
        """Return bound value expressions keyed by variable name."""
        return {
            binding.name: binding.value
            for binding in self.bindings
        }


class GeneratedUnit(SchemaModel):
    """Independently executable test unit for one combination.

    The unit body is the Python source of a single zero-argument function
    that binds the combination values, runs the run block, captures its
    result, and runs the check block.
    """

    name: Identifier = Field(title='Unit name')

    combination: Combination = Field(title='Bound combination')

    body: str = Field(
        title='Unit source',
        description='Generated Python source of the unit function.',
    )

    run: CodeBlock = Field(title='Run block')
    run_result_name: Identifier = Field(title='Run result name')
    check: CodeBlock = Field(title='Check block')

    @property
    def bindings(self) -> dict[str, str]:
        """Bound value expressions keyed by variable name."""
        return self.combination.as_dict()

    def bind(self, namespace: 'Mapping[str, Any] | None' = None, *,
             filename: str | None = None) -> UnitCallable:
        """Compile the unit against a namespace.

        The body is compiled and executed against a copy of the namespace,
        so value expressions and free names in the blocks resolve like
        module-level code, while nothing defined by one unit is visible
        to another. The source is registered in `linecache` so tracebacks
        show the generated lines.

        Args:
            namespace: Globals to compile against, usually the globals
                of the module holding the bundle.
            filename: Pseudo-filename used for tracebacks.

        Returns:
            The zero-argument unit function.

        Raises:
            UnitCompileError: If the generated body is not valid Python.
        """
        if filename is None:
            filename = f'<permutations {self.name}>'

        try:
            code = compile(self.body, filename, 'exec', dont_inherit=True)
        except SyntaxError as base:
            raise UnitCompileError.from_syntax_error(
                base,
                source=self.body,
                filename=filename,
            ) from base

        source_cache[filename] = (
            len(self.body),
            None,
            self.body.splitlines(keepends=True),
            filename,
        )

        globals_: dict[str, Any] = dict(namespace or {})
        locals_: dict[str, Any] = {}
        exec(code, globals_, locals_)  # noqa: S102

        return locals_[self.name]  # type: ignore[no-any-return]


class OutputBundle(SchemaModel):
    """All generated units of one specification, grouped by title.

    Units are kept in combination enumeration order.
    """

    title: Identifier = Field(title='Specification title')

    units: tuple[GeneratedUnit, ...] = Field(
        min_length=1,
        title='Generated units',
        description='Units in combination enumeration order.',
    )

    @model_validator(mode='after')
    def check_unique_names(self) -> Self:
        """Check that unit names are pairwise distinct.

        Returns:
            Self.

        Raises:
            ValueError: If two units share a name.
        """
        if len(set(self.names)) != len(self.units):
            raise ValueError('unit names are not unique')

        return self

    @property
    def names(self) -> tuple[str, ...]:
        """Unit names in enumeration order."""
        return tuple(unit.name for unit in self.units)

    def __len__(self) -> int:
        """Number of generated units."""
        return len(self.units)

    def __getitem__(self, name: str) -> GeneratedUnit:
        """Return the unit with the given name.

        Raises:
            KeyError: If no unit has this name.
        """
        for unit in self.units:
            if unit.name == name:
                return unit

        raise KeyError(name)

    def filename_for(self, unit: GeneratedUnit) -> str:
        """Pseudo-filename used when compiling a unit of this bundle."""
        return f'<permutations {self.title}::{unit.name}>'

    def bind(self, namespace: 'Mapping[str, Any] | None' = None) -> dict[str, UnitCallable]:
        """Compile every unit against a namespace.

        Args:
            namespace: Globals to compile against.

        Returns:
            Unit functions keyed by unit name, in enumeration order.

        Raises:
            UnitCompileError: If any generated body is not valid Python.
        """
        return {
            unit.name: unit.bind(namespace, filename=self.filename_for(unit))
            for unit in self.units
        }

    def render(self) -> str:
        """Render the expanded Python source of every unit."""
        header = f'# {self.title}: {len(self.units)} generated units'

        return f'{header}\n\n\n' + '\n\n'.join(unit.body for unit in self.units)
