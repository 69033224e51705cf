"""Declarative schema for parameterized scenarios.

Defines immutable Pydantic models that describe specifications,
variables and their value sets, combinations, generated units, and
the bundles grouping them.
"""

from .specs import CodeBlock, RunClause, SpecDocument, Specification, ValueExpr, VariableDecl
from .units import Binding, Combination, GeneratedUnit, OutputBundle, UnitCallable

__all__ = (
    'Binding',
    'CodeBlock',
    'Combination',
    'GeneratedUnit',
    'OutputBundle',
    'RunClause',
    'SpecDocument',
    'Specification',
    'UnitCallable',
    'ValueExpr',
    'VariableDecl',
)
