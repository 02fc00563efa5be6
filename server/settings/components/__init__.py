"""Shared helpers for settings components."""

from os import environ
from pathlib import Path
from typing import Final, TypeVar

from decouple import AutoConfig, undefined

_Value = TypeVar('_Value')

# Build paths inside the project like this: BASE_DIR.joinpath('some')
BASE_DIR = Path(__file__).parent.parent.parent.parent

# Values are read from environment variables first, then `config/.env`
config = AutoConfig(search_path=BASE_DIR.joinpath('config'))

# `server.settings` sets `DJANGO_ENV` before any component is loaded
_IS_DEVELOPMENT: Final = environ.get('DJANGO_ENV') == 'development'


def development_default(value: _Value) -> _Value:
    """Default for a value that every other environment must set.

    Args:
        value: Default used for local development.

    Returns:
        The value in development, otherwise decouple's ``undefined``,
        which makes ``config`` raise when the setting is missing.
    """
    return value if _IS_DEVELOPMENT else undefined
