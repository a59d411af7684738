"""Render ``config.yaml`` with environment variables and parse it into ``ConfigData``."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from src.catalog.runtime.config.config_data import ConfigData

# ${NAME}, ${NAME:-default} or ${NAME:?message}
_PLACEHOLDER = re.compile(r"\$\{(?P<name>[^}:]+)(?:(?P<op>:-|:\?)(?P<arg>[^}]*))?\}")


def substitute_env_vars(text: str) -> str:
    """Replace ``${...}`` placeholders with environment values.

    ``${NAME:-default}`` falls back to ``default``; ``${NAME}`` and
    ``${NAME:?message}`` raise ``ValueError`` when ``NAME`` is unset.
    """

    def resolve(match: re.Match[str]) -> str:
        name, op, arg = match.group("name", "op", "arg")
        value = os.getenv(name)
        if value is not None:
            return value
        if op == ":-":
            return arg
        if op == ":?":
            raise ValueError(f"Required environment variable {name}: {arg}")
        raise ValueError(f"Required environment variable {name} not set")

    return _PLACEHOLDER.sub(resolve, text)


def apply_environment_overrides(env_mode: str) -> list[str]:
    """Promote ``<ENV>_``-prefixed variables to their unprefixed names.

    With ``APP_ENVIRONMENT=test``, ``TEST_DATABASE_URL`` becomes
    ``DATABASE_URL`` before the template is rendered. Returns the names
    of the variables that were set.
    """
    prefix = f"{env_mode.upper()}_"
    promoted = {
        name[len(prefix):]: value
        for name, value in os.environ.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    os.environ.update(promoted)
    for name in promoted:
        logger.debug("Set environment variable {} from {}{}", name, prefix, name)
    return list(promoted)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Load ``file_path``, substitute placeholders and validate the ``config`` section.

    Raises:
        ValueError: on a missing required variable, malformed YAML or
            values that fail validation.
        FileNotFoundError: if the file does not exist.
    """
    env_mode = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading configuration {} for environment {}", file_path, env_mode)

    promoted = apply_environment_overrides(env_mode)
    if promoted:
        logger.info("Applied environment-specific overrides: {}", sorted(promoted))

    rendered = substitute_env_vars(Path(file_path).read_text())
    try:
        document = yaml.safe_load(rendered)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML in {file_path}: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"Error parsing YAML in {file_path}: expected a mapping")

    try:
        config = ConfigData.model_validate(document.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {file_path}: {e}") from e

    if config.app.environment == "production" and not config.app.token_signing_secret:
        logger.warning("No token signing secret configured for production")
    return config
