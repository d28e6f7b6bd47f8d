"""Renamer configuration loaded from environment variables.

Azure Functions app settings (or ``local.settings.json`` for local dev)
are the source of truth. ``from_env()`` raises ``ConfigValidationError``
when a value is out of range so that bad configuration is caught at
startup rather than on the first upload.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from kml_renamer.core.constants import DEFAULT_OUTPUT_SUFFIX, DEFAULT_PREFIX
from kml_renamer.core.exceptions import RenamerError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class ConfigValidationError(RenamerError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class RenamerConfig:
    """Immutable renamer configuration.

    Attributes:
        default_prefix: Prefix applied when a request does not pass one.
        max_prefix_length: Longest prefix a request may supply.
        max_upload_bytes: Largest accepted upload (KML or KMZ) in bytes.
        output_suffix: Inserted before the extension of the download name.
        require_all_categories: Reject alias-mode requests when any pole
            category is missing instead of returning a partial rename.
    """

    default_prefix: str = DEFAULT_PREFIX
    max_prefix_length: int = 32
    max_upload_bytes: int = 50 * 1024 * 1024
    output_suffix: str = DEFAULT_OUTPUT_SUFFIX
    require_all_categories: bool = False

    @classmethod
    def from_env(cls) -> RenamerConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a boolean
                flag is not recognised.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``RENAME_MAX_UPLOAD_BYTES=abc``).
        """
        config = cls(
            default_prefix=os.getenv("RENAME_DEFAULT_PREFIX", DEFAULT_PREFIX),
            max_prefix_length=int(os.getenv("RENAME_MAX_PREFIX_LENGTH", "32")),
            max_upload_bytes=int(os.getenv("RENAME_MAX_UPLOAD_BYTES", str(50 * 1024 * 1024))),
            output_suffix=os.getenv("RENAME_OUTPUT_SUFFIX", DEFAULT_OUTPUT_SUFFIX),
            require_all_categories=_parse_bool(
                "REQUIRE_ALL_CATEGORIES", os.getenv("REQUIRE_ALL_CATEGORIES", "false")
            ),
        )
        _validate(config)
        return config


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean (true/false)")


def _validate(config: RenamerConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.max_prefix_length <= 0:
        raise ConfigValidationError(
            "RENAME_MAX_PREFIX_LENGTH",
            config.max_prefix_length,
            "must be > 0 (characters)",
        )

    if len(config.default_prefix) > config.max_prefix_length:
        raise ConfigValidationError(
            "RENAME_DEFAULT_PREFIX",
            config.default_prefix,
            f"must be at most {config.max_prefix_length} characters",
        )

    if config.max_upload_bytes <= 0:
        raise ConfigValidationError(
            "RENAME_MAX_UPLOAD_BYTES",
            config.max_upload_bytes,
            "must be > 0 (bytes)",
        )

    if not config.output_suffix:
        raise ConfigValidationError(
            "RENAME_OUTPUT_SUFFIX",
            config.output_suffix,
            "must not be empty",
        )
