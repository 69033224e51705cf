"""Generated unit emission.

For every combination the emitter writes the Python source of one
zero-argument function. The function binds the combination values to
the variable names, evaluates the run block into the result name, and
runs the check block. Run and check code are inserted verbatim, only
re-indented; the emitter adds no pass/fail logic of its own.

A run block that is a single expression is assigned directly::

    def a_A1__b_B10():
        a = A1
        b = B10
        result = (
            some_code(a, b)
        )
        assert result == 2 * a + 4 * b

Any other run block becomes the body of a nested function whose return
value is the result. The bindings are passed to it as arguments, so the
block may rebind them like any local name without affecting the check
block::

    def a_A1__b_B10():
        a = A1
        b = B10
        def _run_block(a, b):
            c = a + b
            return some_code(c)
        result = _run_block(a, b)
        assert result == 2 * a + 4 * b
"""

from textwrap import indent
from typing import TYPE_CHECKING

from pytest_permutations.schema import GeneratedUnit

if TYPE_CHECKING:
    from pytest_permutations.names import NameSynthesizer
    from pytest_permutations.schema import Binding, Combination, Specification

INDENT = ' ' * 4

#: Base name of the nested function wrapping statement run blocks.
RUN_FUNCTION = '_run_block'


def is_expression(code: str) -> bool:
    """Check whether code compiles as a single Python expression."""
    try:
        compile(code, '<run block>', 'eval', dont_inherit=True)

    except (SyntaxError, ValueError):
        return False

    return True


class UnitEmitter:
    """Emit generated units for the combinations of one specification."""

    def __init__(self, specification: 'Specification', *,
                 names: 'NameSynthesizer') -> None:
        """Initialize the emitter.

        Args:
            specification: Specification providing the shared blocks.
            names: Synthesizer deriving unit names.
        """
        self.specification = specification
        self.names = names

        self._run_lines = self._render_run()
        self._check_lines = self._render_check()

    def emit(self, combination: 'Combination') -> GeneratedUnit:
        """Emit the unit of one combination.

        Args:
            combination: Combination to bind.

        Returns:
            The generated unit.
        """
        name = self.names.name_for(combination)

        return GeneratedUnit(
            name=name,
            combination=combination,
            body=self.render(name, combination),
            run=self.specification.run,
            run_result_name=self.specification.run_result_name,
            check=self.specification.check,
        )

    def render(self, name: str, combination: 'Combination') -> str:
        """Render the source of a unit function.

        Args:
            name: Function name.
            combination: Combination to bind.

        Returns:
            Source of the function definition.
        """
        lines = [f'def {name}():']
        for binding in combination.bindings:
            lines.extend(self._render_binding(binding))
        lines.extend(self._run_lines)
        lines.extend(self._check_lines)

        return '\n'.join(lines) + '\n'

    @staticmethod
    def _render_binding(binding: 'Binding') -> list[str]:
        if '\n' not in binding.value:
            return [f'{INDENT}{binding.name} = {binding.value}']

        return [
            f'{INDENT}{binding.name} = (',
            indent(binding.value, INDENT * 2),
            f'{INDENT})',
        ]

    def _render_run(self) -> list[str]:
        code = self.specification.run.code
        result = self.specification.run_result_name

        if not code:
            return [f'{INDENT}{result} = None']

        if is_expression(code):
            return [
                f'{INDENT}{result} = (',
                indent(code, INDENT * 2),
                f'{INDENT})',
            ]

        function = self._run_function_name()
        arguments = ', '.join(variable.name for variable in self.specification.variables)

        return [
            f'{INDENT}def {function}({arguments}):',
            indent(code, INDENT * 2),
            f'{INDENT}{result} = {function}({arguments})',
        ]

    def _run_function_name(self) -> str:
        """Name of the run block function, distinct from every bound name."""
        taken = {variable.name for variable in self.specification.variables}
        taken.add(self.specification.run_result_name)

        name = RUN_FUNCTION
        while name in taken:
            name = f'_{name}'

        return name

    def _render_check(self) -> list[str]:
        code = self.specification.check.code or 'pass'

        return [indent(code, INDENT)]
