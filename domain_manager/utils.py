from typing import Any

from domain_manager.constants import PLUGIN_NAME
from domain_manager.exceptions import ConfigError

_TRUE_VALUES = ("true", "1")
_FALSE_VALUES = ("false", "0")


def evaluate_boolean(value: Any, default: bool | None) -> bool | None:
    """Evaluate a boolean-ish config value.

    Config values often arrive as strings (environment variable interpolation),
    so ``"true"``/``"1"`` and ``"false"``/``"0"`` are accepted, case and whitespace
    insensitive. ``None`` means the value was not given and returns ``default``.

    Raises:
        ConfigError: If the value cannot be read as a boolean.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value

    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f'{PLUGIN_NAME}: Ambiguous boolean config: "{value}"')
