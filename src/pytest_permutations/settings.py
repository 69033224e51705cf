"""Runtime settings.

Settings are resolved from `PERMUTATIONS_*` environment variables and
may be overridden explicitly (the pytest plugin overrides them from its
command-line options).
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from pytest_permutations.models import SettingsModel


class Settings(SettingsModel):
    """Expansion and reporting settings."""

    model_config = SettingsConfigDict(
        env_prefix='PERMUTATIONS_',
    )

    delimiter: str = Field(
        default='__',
        min_length=1,
        pattern=r'^[A-Za-z0-9_]+$',
        title='Name delimiter',
        description=(
            'Separator placed between the variable parts of a generated '
            'unit name. Must consist of identifier characters only.'
        ),
    )

    show_bindings: bool = Field(
        default=True,
        title='Show bindings',
        description=(
            'Whether failure reports of generated units include '
            'the variable bindings of the failed combination.'
        ),
    )

    strict: bool = Field(
        default=True,
        title='Strict mode',
        description=(
            'Whether non-fatal collection issues, such as two bundles '
            'sharing a title in one module, raise errors instead of '
            'emitting warnings.'
        ),
    )
