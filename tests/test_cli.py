"""Tests for the command-line utilities."""

from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from pytest_permutations.__main__ import cli

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem

DOUBLES_YAML = (
    'title: doubles_example\n'
    'let:\n'
    '  - name: a\n'
    '    values: [A1, A2, A3]\n'
    '  - name: b\n'
    '    values: [B10, B20]\n'
    'when:\n'
    '  name: result\n'
    '  code: some_code(a, b)\n'
    "then: 'assert result == 2 * a + 4 * b'\n"
)


@pytest.mark.parametrize('filename, content_fixture', (
    pytest.param('doubles.perm', 'doubles_source', id='block'),
    pytest.param('doubles.yaml', None, id='yaml'),
))
def test_list_units(filename: str, content_fixture: str | None, fs: 'FakeFilesystem',
                    doubles_units: tuple[str, ...], request: pytest.FixtureRequest) -> None:
    """List the identifiers of generated units."""
    content = request.getfixturevalue(content_fixture) if content_fixture else DOUBLES_YAML
    fs.create_file(filename, contents=content)

    result = CliRunner().invoke(cli, ['list', filename])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [f'doubles_example::{name}' for name in doubles_units]


def test_explicit_syntax(fs: 'FakeFilesystem') -> None:
    """Parse with an explicitly selected syntax."""
    fs.create_file('doubles.txt', contents=DOUBLES_YAML)

    result = CliRunner().invoke(cli, ['list', '--syntax', 'yaml', 'doubles.txt'])

    assert result.exit_code == 0, result.output
    assert len(result.output.splitlines()) == 6


def test_expand_source(fs: 'FakeFilesystem', doubles_source: str) -> None:
    """Print the generated source of every unit."""
    fs.create_file('doubles.perm', contents=doubles_source)

    result = CliRunner().invoke(cli, ['expand', 'doubles.perm'])

    assert result.exit_code == 0, result.output
    assert result.output.startswith('# doubles_example: 6 generated units\n')
    assert 'def a_A3__b_B20():\n    a = A3\n    b = B20\n' in result.output
    assert result.output.endswith('    assert result == 2 * a + 4 * b\n')


def test_invalid_source(fs: 'FakeFilesystem') -> None:
    """Report specification errors with their location."""
    fs.create_file('broken.perm', contents='title broken;\nlet a = A1;\nwhen result = { a }\n')

    result = CliRunner().invoke(cli, ['list', 'broken.perm'])

    assert result.exit_code == 1
    assert 'Error: Missing then clause' in result.output
    assert 'in "broken.perm", line 4, column 1' in result.output


def test_missing_source(fs: 'FakeFilesystem') -> None:
    """Reject paths that do not exist."""
    result = CliRunner().invoke(cli, ['expand', 'missing.perm'])

    assert result.exit_code == 2
    assert 'does not exist' in result.output
