"""Pytest collector for generated unit bundles.

A bundle assigned to a module-level name is collected as one group
named after the specification title. Each generated unit becomes one
`PermutationItem` inside the group, in enumeration order.
"""

from typing import TYPE_CHECKING

import pytest

from .item import PermutationItem

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from typing import Any

    from pytest_permutations.schema import OutputBundle


class PermutationGroup(pytest.Collector):
    """Pytest collector for the units of one bundle."""

    def __init__(self, *,
                 bundle: 'OutputBundle',
                 namespace: 'Mapping[str, Any]',
                 **kwargs: 'Any') -> None:
        """Initialize the group collector.

        Args:
            bundle: Bundle of generated units.
            namespace: Globals of the module holding the bundle.
            **kwargs: Keyword pytest.Collector arguments.
        """
        super().__init__(**kwargs)

        self.bundle = bundle
        self.namespace = namespace

    def collect(self) -> 'Iterable[PermutationItem]':
        """Collect one test item per generated unit.

        Returns:
            Iterable of `PermutationItem` instances in enumeration order.
        """
        for unit in self.bundle.units:
            yield PermutationItem.from_parent(
                self,
                name=unit.name,
                unit=unit,
                filename=self.bundle.filename_for(unit),
                namespace=self.namespace,
            )
