"""Handles loading editor configuration from YAML files."""

import copy
import os
import logging
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'max_total_chars': 74,
    'max_line_chars': 37,
    'min_duration_seconds': 1.0,
    'max_duration_seconds': 7.0,
    'output_suffix': '_edited',
    'log_dir': 'logs',
    'log_file': 'srtalign.log',
    'session_file': '.srtalign/session.json',
    'session_max_age_hours': 24,
    'shortener_model': 'google/flan-t5-base',
    'device': 'cpu',
}

class ConfigLoader:
    """Loads configuration settings from a YAML file on top of built-in defaults."""

    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        self.defaults = copy.deepcopy(defaults if defaults is not None else DEFAULT_CONFIG)

    def load_config(self, config_path: Optional[str]) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Keys present in the file override the defaults; unknown keys are kept
        so callers can carry their own settings.

        Args:
            config_path: The path to the YAML configuration file, or None to
                         use the defaults only.

        Returns:
            A dictionary containing the merged configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML, its root
                                is not a mapping, or it cannot be read.
        """
        config = copy.deepcopy(self.defaults)
        if config_path is None:
            logger.info("No configuration file given, using built-in defaults.")
            return config

        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except OSError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if loaded is None:
            # An empty file means "all defaults"
            loaded = {}
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        config.update(loaded)
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config
