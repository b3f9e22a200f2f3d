"""Configuration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "tracking": {
            "type": "object",
            "default": {},
            "properties": {
                "tolerance_px": {"type": "integer", "minimum": 0, "maximum": 10000, "default": 50},
                "debounce_s": {"type": "number", "minimum": 0, "default": 1.0},
                "eviction_s": {"type": "number", "exclusiveMinimum": 0, "default": 5.0},
                "alert_threshold_s": {"type": "number", "minimum": 0, "default": 10.0},
                "strict_lookups": {"type": "boolean", "default": True},
            },
            "additionalProperties": False,
        },
        "alerts": {
            "type": "object",
            "default": {},
            "properties": {
                "cooldown_s": {"type": "number", "minimum": 0, "default": 2.0},
            },
            "additionalProperties": False,
        },
        "storage": {
            "type": "object",
            "default": {},
            "properties": {
                "data_dir": {"type": "string", "minLength": 1, "default": "data"},
                "alerts_file": {"type": "string", "minLength": 1, "default": "alerts.json"},
                "image_dir_name": {"type": "string", "minLength": 1, "default": "img"},
                "image_extension": {"type": "string", "pattern": "^\\.[A-Za-z0-9]+$", "default": ".png"},
            },
            "additionalProperties": False,
        },
        "loop": {
            "type": "object",
            "default": {},
            "properties": {
                "tick_ms": {"type": "number", "minimum": 1, "maximum": 1000, "default": 33},
                "log_dir": {"type": "string", "minLength": 1, "default": "logs"},
            },
            "additionalProperties": False,
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        for prop, subschema in properties.items():
            if "default" in subschema:
                instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema, filling in defaults.

    Args:
        config: Configuration dictionary (mutated in place with defaults)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration root must be a mapping")

    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
