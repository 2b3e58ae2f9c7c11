# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import os
from dataclasses import dataclass
from typing import Dict, Mapping

import yaml

from servicelog.lib.exceptions import ConfigurationError

ENV_VAR_PREFIX = "SERVICELOG"
ENV_VAR_CONFIG = "CONFIG"
ENV_VAR_LOGLEVEL = "LOGLEVEL"

CONFIG_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_CONFIG}"
LOGLEVEL_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_LOGLEVEL}"

LOGLEVEL_DEFAULT = "INFO"


@dataclass
class ChainConfig:
    label: str
    trim_time_layout: str | None = None
    trim_pattern: str | None = None
    max_prefix_bytes: int | None = None
    command: str | None = None

    @staticmethod
    def from_dict(configs: Dict) -> "ChainConfig":
        if not isinstance(configs, dict):
            raise ConfigurationError("config must be a mapping")

        label = configs.get("label")
        if not isinstance(label, str) or label == "":
            raise ConfigurationError("label is required and must be a non-empty string", "label")

        for key in ("trim_time_layout", "trim_pattern", "command"):
            value = configs.get(key)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(f"{key} must be a string", key)

        max_prefix_bytes = configs.get("max_prefix_bytes")
        if max_prefix_bytes is not None:
            # bool is an int subclass; reject it explicitly.
            if (
                isinstance(max_prefix_bytes, bool)
                or not isinstance(max_prefix_bytes, int)
                or max_prefix_bytes <= 0
            ):
                raise ConfigurationError(
                    "max_prefix_bytes must be a positive integer", "max_prefix_bytes"
                )

        unknown = set(configs) - {
            "label",
            "trim_time_layout",
            "trim_pattern",
            "max_prefix_bytes",
            "command",
        }
        if unknown:
            raise ConfigurationError(f"unknown config keys; keys={sorted(unknown)}")

        return ChainConfig(
            label=label,
            trim_time_layout=configs.get("trim_time_layout"),
            trim_pattern=configs.get("trim_pattern"),
            max_prefix_bytes=max_prefix_bytes,
            command=configs.get("command"),
        )


class Config(object):

    @staticmethod
    def load_configs(config: str) -> Dict:
        try:
            with open(config, "r") as fh:
                return yaml.load(fh, Loader=yaml.FullLoader)
        except OSError as e:
            raise ConfigurationError(f"unable to read config file; path={config}, e={e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"unable to parse config file; path={config}, e={e}") from e

    @staticmethod
    def load_chain_config(config: str) -> ChainConfig:
        return ChainConfig.from_dict(Config.load_configs(config))


@dataclass
class Settings:
    """Settings taken from the SERVICELOG_* environment variables."""

    config_path: str | None = None
    log_level: str = LOGLEVEL_DEFAULT

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "Settings":
        environ = os.environ if environ is None else environ
        env_vars = {k: v for k, v in environ.items() if k.startswith(f"{ENV_VAR_PREFIX}_")}
        log_level = env_vars.get(LOGLEVEL_ENV_VAR_KEY, LOGLEVEL_DEFAULT).upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(
                f"invalid log level; {LOGLEVEL_ENV_VAR_KEY}={log_level}", LOGLEVEL_ENV_VAR_KEY
            )
        return Settings(config_path=env_vars.get(CONFIG_ENV_VAR_KEY) or None, log_level=log_level)
