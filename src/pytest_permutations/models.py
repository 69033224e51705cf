"""Base Pydantic models for specification elements.

This module defines the foundational model classes used by all
specification structures. It enforces immutability and strict schema
validation to guarantee that parsed specifications and generated units
are deterministic, explicit, and safe to share between test items.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all specification elements.

    This class serves as the root for all Pydantic models representing
    specifications, variables, combinations, and generated units.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after creation.
          Every expansion works on its own values and never leaks
          state into another expansion.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in structured input.

    All specification models must inherit from this class.
    """

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    This class serves as the root for all settings models responsible for
    resolving runtime configuration (for example, environment variables,
    CI-provided values, or pytest command-line overrides).

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
