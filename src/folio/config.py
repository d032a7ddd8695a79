import logging
import os
import re

import tomllib
from marshmallow import Schema, fields, validate, validates_schema
from marshmallow import ValidationError as SchemaValidationError

from folio.core.page import ALL_RESULTS
from folio.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _default_config():
    """Return the default configuration for Folio.

    This is placed in a separate function so that every caller works on a fresh copy of the
    defaults, and manipulating config in tests cannot leak into other instances.
    """
    return {
        "env": None,
        "page_size": 20,
        "prefetch_pages": 4,
        "id_field": "id",
        "cache": {
            "max_pages": 64,
            "ttl": None,
        },
        "executors": {
            "default": {"provider": "memory"},
        },
        "logging": {
            "level": "INFO",
        },
        "custom": {},
    }


class CacheSchema(Schema):
    max_pages = fields.Integer(
        allow_none=True, validate=validate.Range(min=1), load_default=64
    )
    ttl = fields.Float(allow_none=True, validate=validate.Range(min=0), load_default=None)


class ExecutorSchema(Schema):
    class Meta:
        unknown = "include"

    provider = fields.String(required=True)


class LoggingSchema(Schema):
    class Meta:
        unknown = "include"

    level = fields.String(
        validate=validate.OneOf(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        load_default="INFO",
    )


class ConfigSchema(Schema):
    """Validates a normalized configuration"""

    class Meta:
        unknown = "include"

    env = fields.String(allow_none=True)
    page_size = fields.Integer(required=True)
    prefetch_pages = fields.Integer(required=True, validate=validate.Range(min=0))
    id_field = fields.String(required=True, validate=validate.Length(min=1))
    cache = fields.Nested(CacheSchema, required=True)
    executors = fields.Dict(
        keys=fields.String(), values=fields.Nested(ExecutorSchema), required=True
    )
    logging = fields.Nested(LoggingSchema, required=True)
    custom = fields.Dict()

    @validates_schema
    def validate_page_size(self, data, **kwargs):
        page_size = data.get("page_size")
        if page_size is not None and page_size <= 0 and page_size != ALL_RESULTS:
            raise SchemaValidationError(
                "Page size must be positive, or -1 for all results", "page_size"
            )


class Config(dict):
    """Folio configuration, as a dictionary.

    Values are loaded from a dictionary or from a TOML file, merged over the defaults, with the
    section named by the `FOLIO_ENV` environment variable (if any) merged on top. Strings of
    the form `${VAR}` or `${VAR|default}` are replaced with environment variable values.
    """

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    @classmethod
    def load_from_dict(cls, config: dict = None):
        """Load configuration from a dictionary."""
        config = cls._normalize_config(config or {})
        config = cls._load_env_vars(config)
        return cls(**cls._validate(config))

    @classmethod
    def find_config_file(cls, path: str):
        """Return the configuration file for `path`, or `None` if there is none.

        Looks for `.folio.toml`, `folio.toml` and `pyproject.toml`, in that order, in the
        directory of `path` and up to 2 parent directories.
        """
        current_dir = os.path.abspath(os.path.dirname(path))

        for _ in range(3):
            for config_file in [".folio.toml", "folio.toml", "pyproject.toml"]:
                config_file_path = os.path.join(current_dir, config_file)
                if os.path.exists(config_file_path):
                    return config_file_path

            current_dir = os.path.dirname(current_dir)

        return None

    @classmethod
    def load_from_path(cls, path: str):
        config_file_name = cls.find_config_file(path)
        if not config_file_name:
            raise ConfigurationError(
                f"No configuration file found in {os.path.dirname(path)}"
            )

        with open(config_file_name, "rb") as f:
            config = tomllib.load(f)

        # If pyproject.toml, extract folio configuration from the 'tool.folio' section
        if config_file_name.endswith("pyproject.toml"):
            config = config.get("tool", {}).get("folio", {})

        logger.debug(f"Loaded configuration from {config_file_name}")

        config = cls._normalize_config(config)
        config = cls._load_env_vars(config)

        return cls(**cls._validate(config))

    @classmethod
    def _normalize_config(cls, config):
        """Combine the values in `config` with the defaults and the configured environment."""
        environment = os.environ.get("FOLIO_ENV") or config.get("env") or None

        # Gather values of known variables
        keys = _default_config().keys()
        finalized_config = {key: value for key, value in config.items() if key in keys}

        # Merge with defaults
        finalized_config = cls._deep_merge(_default_config(), finalized_config)

        # Look for section linked to the specified environment
        if environment and environment in config:
            environment_config = config[environment]
            finalized_config = cls._deep_merge(finalized_config, environment_config)
            finalized_config["env"] = environment

        return finalized_config

    @classmethod
    def _validate(cls, config):
        try:
            return ConfigSchema().load(config)
        except SchemaValidationError as exc:
            raise ConfigurationError(
                f"Invalid configuration: {exc.messages}", extra_info=exc.messages
            ) from exc

    @classmethod
    def _deep_merge(cls, dict1: dict, dict2: dict):
        result = dict1.copy()
        for key, value in dict2.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @classmethod
    def _load_env_vars(cls, config):
        if isinstance(config, dict):
            for key, value in config.items():
                if isinstance(value, str):
                    config[key] = cls._replace_env_var(value)
                elif isinstance(value, dict):
                    config[key] = cls._load_env_vars(value)
                elif isinstance(value, list):
                    config[key] = [
                        cls._replace_env_var(item) if isinstance(item, str) else item
                        for item in value
                    ]
        return config

    @classmethod
    def _replace_env_var(cls, value):
        """Replace `${ENV_VAR}` and `${ENV_VAR|default}` occurrences in a string.

        A string may hold several variables, mixed with static text, as in
        `"sqlite:///${DATA_DIR|/tmp}/${DB_NAME}.db"`.
        """
        match = cls.ENV_VAR_PATTERN.search(value)
        while match:
            matched_string = match.group(1)

            if "|" in matched_string:
                env_var, default_value = matched_string.split("|", 1)
                env_value = os.getenv(env_var, default_value)
            else:
                env_value = os.getenv(matched_string)

            if env_value is None:
                raise ConfigurationError(
                    f"Environment variable {matched_string} is not set"
                )

            value = value.replace(f"${{{matched_string}}}", env_value)
            match = cls.ENV_VAR_PATTERN.search(value)

        return value
