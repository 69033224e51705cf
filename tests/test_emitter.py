"""Tests for generated unit emission and execution."""

from linecache import getline
from textwrap import indent
from typing import TYPE_CHECKING

import pytest

from pytest_permutations.core import SpecParser, expand
from pytest_permutations.core.emitter import is_expression
from pytest_permutations.errors import UnitCompileError

if TYPE_CHECKING:
    from typing import Any

    from pytest_permutations.schema import Specification


def test_expression_unit_body(doubles_spec: 'Specification') -> None:
    """Assign a single expression run block directly."""
    unit = expand(doubles_spec).units[0]

    assert unit.body == (
        'def a_A1__b_B10():\n'
        '    a = A1\n'
        '    b = B10\n'
        '    result = (\n'
        '        some_code(a, b)\n'
        '    )\n'
        '    assert result == 2 * a + 4 * b\n'
    )


def test_statement_unit_body() -> None:
    """Wrap statement run blocks in a nested function."""
    spec = SpecParser().parse(
        'title statements;\n'
        'let a = 1;\n'
        'when result = {\n'
        '    total = 0\n'
        '    for item in range(a):\n'
        '        total += item\n'
        '    return total\n'
        '}\n'
        'then {\n'
        '    assert result == 0\n'
        '    assert a == 1\n'
        '}\n',
    )

    assert expand(spec).units[0].body == (
        'def a_1():\n'
        '    a = 1\n'
        '    def _run_block(a):\n'
        '        total = 0\n'
        '        for item in range(a):\n'
        '            total += item\n'
        '        return total\n'
        '    result = _run_block(a)\n'
        '    assert result == 0\n'
        '    assert a == 1\n'
    )


def test_run_block_rebinds_variable(namespace: 'dict[str, Any]') -> None:
    """Let statement run blocks rebind variables without affecting the check."""
    spec = SpecParser().parse(
        'title rebinding;\n'
        'let a = A1 or A2;\n'
        'let b = B10;\n'
        'when result = {\n'
        '    a = a * 10\n'
        '    return a + b\n'
        '}\n'
        'then {\n'
        '    assert result == a * 10 + b\n'
        '}\n',
    )
    bundle = expand(spec)

    assert '    def _run_block(a, b):\n        a = a * 10\n' in bundle.units[0].body
    assert '    result = _run_block(a, b)\n' in bundle.units[0].body
    for function in bundle.bind(namespace).values():
        function()


def test_run_block_locals_hidden_from_check(namespace: 'dict[str, Any]') -> None:
    """Keep names assigned by a statement run block out of the check block."""
    spec = SpecParser().parse(
        'title scoped;\n'
        'let a = A1;\n'
        'when result = {\n'
        '    doubled = a * 2\n'
        '    return doubled\n'
        '}\n'
        'then {\n'
        '    assert result == 2\n'
        "    assert 'doubled' not in dir()\n"
        '}\n',
    )

    expand(spec).units[0].bind(namespace)()


@pytest.mark.parametrize('source, function', (
    pytest.param(
        'title t; let _run_block = A1; when result = { x = _run_block\n return x } then { assert _run_block == 1 }',
        '__run_block',
        id='variable',
    ),
    pytest.param(
        'title t; let a = A1; when _run_block = { x = a\n return x } then { assert _run_block == a }',
        '__run_block',
        id='result name',
    ),
    pytest.param(
        'title t; let _run_block = A1; let __run_block = A1; when r = { x = 1\n return x } then { assert r }',
        '___run_block',
        id='several variables',
    ),
))
def test_run_function_avoids_bound_names(source: str, function: str,
                                         namespace: 'dict[str, Any]') -> None:
    """Name the run block function apart from variables and the result."""
    unit = expand(SpecParser().parse(source)).units[0]

    assert f'    def {function}(' in unit.body
    unit.bind(namespace)()


def test_empty_blocks() -> None:
    """Bind `None` for an empty run block and pass an empty check."""
    spec = SpecParser().parse('title empty; let a = 1; when result = {} then {}')

    unit = expand(spec).units[0]

    assert unit.body == (
        'def a_1():\n'
        '    a = 1\n'
        '    result = None\n'
        '    pass\n'
    )
    assert unit.bind()() is None


def test_multiline_value() -> None:
    """Parenthesize value expressions spanning several lines."""
    spec = SpecParser().parse(
        'title multiline;\n'
        'let a = [\n'
        '    1,\n'
        '    2,\n'
        '];\n'
        'when result = { sum(a) } then { assert result == 3 }\n',
    )

    unit = expand(spec).units[0]

    assert unit.name == 'a_1_2'
    assert '    a = (\n        [\n            1,\n' in unit.body
    unit.bind()()


def test_blocks_are_inserted_verbatim(doubles_spec: 'Specification') -> None:
    """Insert the run and check blocks unchanged into every unit."""
    bundle = expand(doubles_spec)

    for unit in bundle.units:
        assert indent(doubles_spec.run.code, ' ' * 8) in unit.body
        assert indent(doubles_spec.check.code, ' ' * 4) in unit.body
        assert unit.run == doubles_spec.run
        assert unit.check == doubles_spec.check
        assert unit.run_result_name == 'result'


@pytest.mark.parametrize('code, expected', (
    pytest.param('some_code(a, b)', True, id='call'),
    pytest.param('a\n+ b', False, id='unparenthesized continuation'),
    pytest.param('(a\n + b)', True, id='parenthesized continuation'),
    pytest.param('value = a', False, id='assignment'),
    pytest.param('return a', False, id='return'),
    pytest.param('x = 1\nreturn x', False, id='statements'),
))
def test_is_expression(code: str, expected: bool) -> None:
    """Detect run blocks compiling as a single expression."""
    assert is_expression(code) is expected


def test_units_run(doubles_spec: 'Specification', namespace: 'dict[str, Any]') -> None:
    """Run every unit against module-like globals."""
    for function in expand(doubles_spec).bind(namespace).values():
        assert function() is None


def test_unit_failure_propagates(namespace: 'dict[str, Any]') -> None:
    """Propagate failures of the check block to the caller."""
    spec = SpecParser().parse(
        'title bounded;\n'
        'let a = A1 or A3;\n'
        'let b = B10 or B20;\n'
        'when result = { some_code(a, b) }\n'
        'then { assert result < 50, result }\n',
    )

    functions = expand(spec).bind(namespace)

    functions['a_A1__b_B10']()
    functions['a_A3__b_B10']()

    with pytest.raises(AssertionError, match='^82$'):
        functions['a_A1__b_B20']()
    with pytest.raises(AssertionError, match='^86$'):
        functions['a_A3__b_B20']()


def test_run_failure_propagates(namespace: 'dict[str, Any]') -> None:
    """Propagate exceptions raised by the run block."""
    spec = SpecParser().parse(
        'title failing; let a = A1; when result = { a / 0 } then { assert False }',
    )

    with pytest.raises(ZeroDivisionError):
        expand(spec).units[0].bind(namespace)()


def test_units_are_isolated(namespace: 'dict[str, Any]') -> None:
    """Keep names defined by one unit away from other units and the module."""
    spec = SpecParser().parse(
        'title isolated;\n'
        'let a = A1 or A2;\n'
        'when result = { a }\n'
        'then {\n'
        "    assert 'seen' not in globals()\n"
        '    global seen\n'
        '    seen = result\n'
        '}\n',
    )

    for function in expand(spec).bind(namespace).values():
        function()

    assert 'seen' not in namespace


def test_value_resolved_at_run_time(namespace: 'dict[str, Any]') -> None:
    """Evaluate value expressions when the unit runs, not when expanded."""
    spec = SpecParser().parse(
        'title late; let a = A1; when result = { a } then { assert result == 7 }',
    )
    unit = expand(spec).units[0]

    with pytest.raises(AssertionError):
        unit.bind(namespace)()

    unit.bind({**namespace, 'A1': 7})()


def test_unit_compile_error() -> None:
    """Report a unit whose generated source is not valid Python."""
    spec = SpecParser().parse(
        'title broken; let a = A1 or A2; when result = { a } then { assert ( }',
    )
    bundle = expand(spec)

    with pytest.raises(UnitCompileError, match=r'^Generated unit does not compile') as error:
        bundle.units[0].bind(filename='<broken>')

    assert error.value.context is not None
    assert error.value.context['filename'] == '<broken>'


def test_traceback_source(doubles_spec: 'Specification', namespace: 'dict[str, Any]') -> None:
    """Register generated source for tracebacks."""
    bundle = expand(doubles_spec)
    unit = bundle.units[0]

    unit.bind(namespace, filename='<doubles a_A1__b_B10>')

    assert getline('<doubles a_A1__b_B10>', 1) == 'def a_A1__b_B10():\n'
    assert getline('<doubles a_A1__b_B10>', 7) == '    assert result == 2 * a + 4 * b\n'
