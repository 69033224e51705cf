"""Pytest item running one generated unit."""

from typing import TYPE_CHECKING

import pytest
from yaml import dump

from pytest_permutations.errors import PermutationsError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from _pytest._code.code import ExceptionInfo, TerminalRepr, TracebackStyle

    from pytest_permutations.schema import GeneratedUnit


class PermutationItem(pytest.Item):
    """Pytest item executing a single generated unit.

    The unit is compiled when the item runs, so that names patched on the
    module before the test are visible to it. Whatever the check code
    raises is reported as the test failure.
    """

    def __init__(self, *,
                 unit: 'GeneratedUnit',
                 filename: str,
                 namespace: 'Mapping[str, Any]',
                 **kwargs: 'Any') -> None:
        """Initialize a pytest item backed by a generated unit.

        Args:
            unit: Generated unit to run.
            filename: Pseudo-filename the unit is compiled under.
            namespace: Globals of the module holding the bundle.
            **kwargs: Keyword pytest.Item arguments.
        """
        super().__init__(**kwargs)

        self.unit = unit
        self.filename = filename
        self.namespace = namespace

        self.user_properties.extend(unit.bindings.items())

    def runtest(self) -> None:
        """Compile and run the generated unit."""
        function = self.unit.bind(self.namespace, filename=self.filename)

        try:
            function()

        except BaseException:
            if self.config.permutations_settings.show_bindings:  # type: ignore[attr-defined]
                self.add_report_section('call', 'combination', dump(
                    self.unit.bindings,
                    sort_keys=False,
                    allow_unicode=True,
                ))
            raise

    def repr_failure(self, excinfo: 'ExceptionInfo[BaseException]',
                     style: 'TracebackStyle | None' = None) -> 'str | TerminalRepr':
        """Report library errors without the internal traceback."""
        if isinstance(excinfo.value, PermutationsError):
            return str(excinfo.value)

        return super().repr_failure(excinfo, style=style)

    def reportinfo(self) -> tuple['Any', int | None, str]:
        """Location of the item for reports."""
        return self.path, None, f'{self.parent.name}::{self.name}'  # type: ignore[union-attr]
