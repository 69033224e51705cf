"""Pytest plugin collecting generated units.

This module integrates `pytest-permutations` with pytest by:
- registering custom command-line options;
- resolving runtime settings and attaching them to the pytest config;
- collecting module attributes holding an `OutputBundle` as a group of
  test items named after the bundle title.
"""

from typing import TYPE_CHECKING
from warnings import warn

import pytest

from pytest_permutations.errors import PermutationsError, PermutationsWarning
from pytest_permutations.schema import OutputBundle
from pytest_permutations.settings import Settings

from .group import PermutationGroup

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.python import PyCollector

#: Bundle titles already collected from a module.
TITLES_KEY = pytest.StashKey[set[str]]()


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line options for pytest-permutations.

    Args:
        parser: Pytest argument parser.
    """
    group = parser.getgroup('permutations')
    group.addoption(
        '--perm-relaxed',
        action='store_true',
        dest='perm_relaxed',
        default=False,
        help=(
            'Disable strict collection. Bundles sharing a title in one '
            'module emit a warning instead of failing collection.'
        ),
    )
    group.addoption(
        '--perm-hide-bindings',
        action='store_true',
        dest='perm_hide_bindings',
        default=False,
        help=(
            'Do not add the bindings of the failed combination '
            'to failure reports of generated units.'
        ),
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-permutations integration.

    This hook resolves the runtime settings from the environment and the
    command-line options and attaches them to the pytest configuration
    object as `config.permutations_settings`.

    Args:
        config: Pytest configuration object.
    """
    overrides = {}
    if config.getoption('perm_relaxed', default=False):
        overrides['strict'] = False
    if config.getoption('perm_hide_bindings', default=False):
        overrides['show_bindings'] = False

    config.permutations_settings = Settings(**overrides)  # type: ignore[attr-defined]


@pytest.hookimpl(tryfirst=True)
def pytest_pycollect_makeitem(collector: 'PyCollector', name: str,
                              obj: object) -> PermutationGroup | None:
    """Collect a module or class attribute holding a bundle.

    Args:
        collector: Module or class collector being populated.
        name: Attribute name.
        obj: Attribute value.

    Returns:
        A `PermutationGroup` collector if the attribute holds a bundle,
        otherwise `None`.

    Raises:
        PermutationsError: If the bundle title was already collected
            from the same module in strict mode.
    """
    if not isinstance(obj, OutputBundle):
        return None

    module = collector.getparent(pytest.Module)
    if module is None:  # pragma: no cover
        return None

    titles = module.stash.setdefault(TITLES_KEY, set())
    if obj.title in titles:
        message = f'Bundle {name!r} repeats the title {obj.title!r} in {module.name}'
        if collector.config.permutations_settings.strict:  # type: ignore[attr-defined]
            raise PermutationsError(message)
        warn(message, category=PermutationsWarning, stacklevel=2)
    titles.add(obj.title)

    return PermutationGroup.from_parent(
        collector,
        name=obj.title,
        bundle=obj,
        namespace=vars(module.obj),
    )
