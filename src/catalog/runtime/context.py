"""Application context holding the active configuration.

The configuration is loaded once from ``config.yaml`` (or ``APP_CONFIG_FILE``)
and published through a ``ContextVar``, so code running inside
``with_context`` sees a temporarily overridden copy while every other task or
thread keeps seeing the process-wide default.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel

from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.config.config_template import load_templated_yaml
from src.catalog.runtime.settings import EnvironmentVariables


@dataclass
class AppContext:
    """Application context containing configuration and other app-wide state."""

    config: ConfigData


def _load_default_config() -> ConfigData:
    config_path = Path(EnvironmentVariables().config_file)
    if not config_path.exists():
        logger.warning(
            "Configuration file {} not found; using built-in defaults", config_path
        )
        return ConfigData()
    return load_templated_yaml(config_path)


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context", default=AppContext(config=_load_default_config())
)


def get_context() -> AppContext:
    return _app_context.get()


def set_context(context: AppContext) -> Token[AppContext]:
    return _app_context.set(context)


def _explicit_values(model: BaseModel) -> dict[str, Any]:
    """Fields assigned on ``model`` (at any depth), as a nested dict.

    A nested model is included when any of its own fields was assigned, or
    when the nested model itself was assigned as a whole.
    """
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_values(value)
            if nested:
                values[name] = nested
            elif name in model.model_fields_set:
                values[name] = value.model_dump()
        elif name in model.model_fields_set:
            values[name] = value
    return values


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _merge_configs(base: ConfigData, override: ConfigData) -> ConfigData:
    """Overlay the explicitly assigned values of ``override`` onto ``base``."""
    return ConfigData.model_validate(
        _deep_merge(base.model_dump(), _explicit_values(override))
    )


@contextmanager
def with_context(config_override: ConfigData | None = None) -> Iterator[None]:
    """Run a block with ``config_override`` merged over the current config.

    Only the fields assigned on the override replace current values; the
    rest is inherited, so overrides nest.

    Example:
        override = ConfigData()
        override.catalog.strict_availability = True
        with with_context(override):
            assert get_config().catalog.strict_availability
    """
    if config_override is None:
        yield
        return
    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    merged = _merge_configs(get_config(), config_override)
    token = set_context(replace(get_context(), config=merged))
    try:
        yield
    finally:
        _app_context.reset(token)


def set_config(config: ConfigData) -> None:
    """Replace the configuration of the current context."""
    set_context(replace(get_context(), config=config))


def get_config() -> ConfigData:
    return get_context().config
