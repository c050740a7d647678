# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
"""
Configuration of pydelta.

Values are read from a `.pydelta.yaml` file, searched for in the directory that
PYDELTA_HOME points to, the home directory of the user and the current working
directory, in that order. Environment variables that start with PYDELTA_ are merged
on top, a double underscore denotes nesting and a single underscore becomes a dash:

    PYDELTA_METRICS_REPORTERS=logging  ->  {"metrics-reporters": "logging"}
"""

import logging
import os
from typing import List, Optional

from strictyaml import load

from pydelta.typedef import UTF8, RecursiveDict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".pydelta.yaml"
PYDELTA = "pydelta_"
PYDELTA_HOME = "PYDELTA_HOME"


def strtobool(val: str) -> bool:
    """Convert a string representation of truth to true (1) or false (0)."""
    val = val.lower()
    if val in ("y", "yes", "t", "true", "on", "1"):
        return True
    elif val in ("n", "no", "f", "false", "off", "0"):
        return False
    else:
        raise ValueError(f"Invalid truth value: {val!r}")


def merge_config(lhs: RecursiveDict, rhs: RecursiveDict) -> RecursiveDict:
    """Merge right-hand side into the left-hand side."""
    new_config = lhs.copy()
    for rhs_key, rhs_value in rhs.items():
        if rhs_key in new_config:
            lhs_value = new_config[rhs_key]
            if isinstance(lhs_value, dict) and isinstance(rhs_value, dict):
                # If they are both dicts, then we have to go deeper
                new_config[rhs_key] = merge_config(lhs_value, rhs_value)
            else:
                # Take the non-null value, with precedence on rhs
                new_config[rhs_key] = rhs_value or lhs_value
        else:
            # New key
            new_config[rhs_key] = rhs_value

    return new_config


def _lowercase_dictionary_keys(input_dict: RecursiveDict) -> RecursiveDict:
    """Lowers all the keys of a dictionary in a recursive manner, to make the lookup case-insensitive."""
    return {k.lower(): _lowercase_dictionary_keys(v) if isinstance(v, dict) else v for k, v in input_dict.items()}


class Config:
    config: RecursiveDict

    def __init__(self) -> None:
        config = self._from_configuration_files() or {}
        config = merge_config(config, self._from_environment_variables({}))
        self.config = config

    @staticmethod
    def _from_configuration_files() -> Optional[RecursiveDict]:
        """Load the first configuration file that its finds.

        Will first look in the PYDELTA_HOME env variable,
        then in the home directory, and finally in the current working directory.
        """

        def _load_yaml(directory: Optional[str]) -> Optional[RecursiveDict]:
            if directory:
                path = os.path.join(directory, DEFAULT_CONFIG_FILE)
                if os.path.isfile(path):
                    with open(path, encoding=UTF8) as f:
                        yml_str = f.read()
                    file_config = load(yml_str).data
                    logger.debug("Loaded configuration from %s", path)
                    return _lowercase_dictionary_keys(file_config)
            return None

        search_dirs: List[Optional[str]] = [os.environ.get(PYDELTA_HOME), os.path.expanduser("~"), os.getcwd()]
        for directory in search_dirs:
            if config := _load_yaml(directory):
                return config

        return None

    @staticmethod
    def _from_environment_variables(config: RecursiveDict) -> RecursiveDict:
        """Read the environment variables, to check if there are any prepended by PYDELTA_.

        Args:
            config: Existing configuration that's being amended with configuration from environment variables.

        Returns:
            Amended configuration.
        """

        def set_property(_config: RecursiveDict, path: List[str], config_value: str) -> None:
            while len(path) > 0:
                element = path.pop(0)
                if len(path) == 0:
                    # We're at the end
                    _config[element] = config_value
                else:
                    # We go one level deeper
                    if element not in _config:
                        _config[element] = {}
                    nested = _config[element]
                    if not isinstance(nested, dict):
                        raise ValueError(f"Incompatible configurations, merging dict with a value: {element}, value: {config_value}")
                    _config = nested

        for env_var, config_value in os.environ.items():
            # Make it lowercase to make it case-insensitive
            env_var_lower = env_var.lower()
            if env_var_lower.startswith(PYDELTA) and env_var != PYDELTA_HOME:
                key = env_var_lower[len(PYDELTA) :]
                parts = key.split("__")
                parts_normalized = [part.replace("_", "-") for part in parts]
                set_property(config, parts_normalized, config_value)

        return config

    def get(self, key: str) -> Optional[str]:
        value = self.config.get(key)
        return value if isinstance(value, str) else None

    def get_str(self, key: str, default: str) -> str:
        value = self.get(key)
        return value if value is not None else default

    def get_int(self, key: str) -> Optional[int]:
        if (val := self.get(key)) is not None:
            try:
                return int(val)
            except ValueError as err:
                raise ValueError(f"{key} should be an integer or left unset. Current value: {val}") from err
        return None

    def get_bool(self, key: str) -> Optional[bool]:
        if (val := self.get(key)) is not None:
            try:
                return strtobool(val)
            except ValueError as err:
                raise ValueError(f"{key} should be a boolean or left unset. Current value: {val}") from err
        return None
