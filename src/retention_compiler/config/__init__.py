"""Configuration: ``retention.toml`` schema, validation, and layered loading."""

from retention_compiler.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    env_overrides,
    env_variable,
    load_config,
    normalize_paths,
)
from retention_compiler.config.schema import (
    PATH_FIELDS,
    SCHEMA,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    Setting,
    assert_valid_config,
    default_config,
    iter_settings,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "SCHEMA",
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "Setting",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "env_overrides",
    "env_variable",
    "iter_settings",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "validate_config",
]
