"""
Configuration validation utilities.

Environment lookups with type conversion and helpful error messages.
"""
import os
import warnings
from typing import Optional
from .exceptions import ConfigurationError


def get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get optional environment variable.

    :param key: Environment variable name
    :param default: Default value if not set
    :return: Environment variable value or default
    """
    value = os.getenv(key, default)

    if value and _is_placeholder(value):
        # Warn but don't fail for optional configs
        warnings.warn(
            f"{key} appears to be a placeholder. Using default or None.",
            UserWarning
        )
        return default

    return value


def get_float_env(key: str, default: float) -> float:
    """
    Get a float environment variable.

    :param key: Environment variable name
    :param default: Default value if not set
    :return: Parsed float
    :raises: ConfigurationError if the value is not a number
    """
    raw = get_optional_env(key)
    if raw is None or raw.strip() == "":
        return default

    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{key} must be a number, got '{raw}'.\n"
            f"Example: export {key}={default}"
        )


def get_int_env(key: str, default: int, min_value: int = 1) -> int:
    """
    Get an integer environment variable.

    :param key: Environment variable name
    :param default: Default value if not set
    :param min_value: Smallest accepted value
    :return: Parsed integer
    :raises: ConfigurationError if the value is not an integer or too small
    """
    raw = get_optional_env(key)
    if raw is None or raw.strip() == "":
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{key} must be an integer, got '{raw}'.\n"
            f"Example: export {key}={default}"
        )

    if value < min_value:
        raise ConfigurationError(f"{key} must be >= {min_value}, got {value}.")

    return value


def validate_threshold(value: float, name: str) -> float:
    """
    Validate that a confidence threshold lies in (0, 1].

    :param value: Threshold to validate
    :param name: Name of the setting (for error messages)
    :return: Validated threshold
    :raises: ConfigurationError if out of range
    """
    if not 0.0 < value <= 1.0:
        raise ConfigurationError(
            f"{name} must be greater than 0.0 and at most 1.0, got {value}."
        )
    return value


def validate_path(path: str, path_name: str, must_exist: bool = False) -> str:
    """
    Validate file/directory path.

    :param path: Path to validate
    :param path_name: Name of the path (for error messages)
    :param must_exist: Whether path must exist
    :return: Validated path
    :raises: ConfigurationError if invalid
    """
    if not path:
        raise ConfigurationError(f"{path_name} is required.")

    if must_exist and not os.path.exists(path):
        raise ConfigurationError(
            f"{path_name} does not exist: {path}\n"
            f"Please check the path and ensure the file exists."
        )

    return path


def _is_placeholder(value: str) -> bool:
    """Check if value is a placeholder."""
    if not value:
        return False

    placeholder_patterns = [
        "your_",
        "placeholder",
        "replace",
        "changeme",
    ]

    value_lower = value.lower()
    return any(pattern in value_lower for pattern in placeholder_patterns)
