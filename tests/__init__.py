"""Test suite for the pytest-permutations package.

This package contains unit and integration tests validating
specification parsing, combination enumeration, unit name synthesis,
code emission, and pytest collection of generated units.
"""
