"""Configuration management for pvgit."""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from pvgit.models import Config, TrackerConfig
from pvgit.utils.logger import get_logger
from pvgit.utils.shell import get_git_root

logger = get_logger(__name__)

CONFIG_DIR_NAME = ".pvgit"
CONFIG_FILE_NAME = "config.yaml"
ENV_PREFIX = "PVGIT_"


class ConfigError(Exception):
    """Configuration error."""
    pass


class ConfigManager:
    """Layered YAML configuration with environment variable support."""

    def __init__(self):
        """Initialize configuration manager."""
        self._config: Optional[Config] = None
        self._user_config_path = Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        self._project_config_path: Optional[Path] = None
        self._find_project_config()

    @property
    def user_config_path(self) -> Path:
        return self._user_config_path

    def _find_project_config(self) -> None:
        """Find a project configuration file between cwd and the git root."""
        git_root = get_git_root()
        if not git_root:
            return

        current = Path.cwd()
        search_paths = []
        for parent in [current] + list(current.parents):
            if parent == git_root or git_root in parent.parents:
                search_paths.append(parent)
            else:
                break
        if git_root not in search_paths:
            search_paths.append(git_root)

        for parent in search_paths:
            config_path = parent / CONFIG_DIR_NAME / CONFIG_FILE_NAME
            if config_path.exists() and config_path != self._user_config_path:
                self._project_config_path = config_path
                logger.debug(f"Found project config: {config_path}")
                break

    def _expand_env_vars(self, data: Any) -> Any:
        """Recursively expand environment variables in configuration data.

        Supports ${VAR}, ${VAR:-default} and $VAR.
        """
        if isinstance(data, str):
            def replace_env_var(match):
                var_expr = match.group(1)
                if ":-" in var_expr:
                    var_name, default_value = var_expr.split(":-", 1)
                    return os.getenv(var_name, default_value)
                var_value = os.getenv(var_expr)
                if var_value is None:
                    logger.warning(f"Environment variable '{var_expr}' not found")
                    return match.group(0)
                return var_value

            data = re.sub(r"\$\{([^}]+)\}", replace_env_var, data)

            def replace_simple_var(match):
                var_name = match.group(1)
                var_value = os.getenv(var_name)
                if var_value is None:
                    logger.warning(f"Environment variable '{var_name}' not found")
                    return match.group(0)
                return var_value

            data = re.sub(r"\$([A-Z_][A-Z0-9_]*)", replace_simple_var, data)

        elif isinstance(data, dict):
            return {key: self._expand_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._expand_env_vars(item) for item in data]

        return data

    def _load_yaml_file(self, path: Path) -> Dict[str, Any]:
        """Load and parse a YAML configuration file.

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        if not path.exists():
            return {}

        logger.debug(f"Loading config file: {path}")

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config file {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        return data

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply PVGIT_* environment overrides.

        Double underscores separate nested keys, e.g. PVGIT_TRACKER__API_TOKEN
        sets tracker.api_token.
        """
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            key_parts = key[len(ENV_PREFIX):].lower().split("__")

            current = config_data
            for part in key_parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            final_key = key_parts[-1]
            # Tokens are opaque strings even when they look numeric
            if final_key in ("api_token", "username"):
                current[final_key] = value
            elif value.lower() in ("true", "false"):
                current[final_key] = value.lower() == "true"
            elif value.isdigit():
                current[final_key] = int(value)
            else:
                current[final_key] = value

            logger.debug(f"Applied env override: {'.'.join(key_parts)}")

        return config_data

    def load_config(self) -> Config:
        """Load configuration from all sources.

        Loading order (later sources override earlier):
        1. Defaults from the Config model
        2. User configuration (~/.pvgit/config.yaml)
        3. Project configuration (<project>/.pvgit/config.yaml)
        4. Environment variables

        Raises:
            ConfigError: If configuration is invalid
        """
        config_data: Dict[str, Any] = {}

        user_config = self._expand_env_vars(self._load_yaml_file(self._user_config_path))
        config_data = self._merge_configs(config_data, user_config)

        if self._project_config_path:
            project_config = self._expand_env_vars(
                self._load_yaml_file(self._project_config_path)
            )
            config_data = self._merge_configs(config_data, project_config)

        config_data = self._apply_env_overrides(config_data)

        try:
            self._config = Config.model_validate(config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")

        logger.debug("Configuration loaded successfully")
        return self._config

    def get_config(self) -> Config:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def reload_config(self) -> Config:
        """Reload configuration from all sources."""
        self._config = None
        self._find_project_config()
        return self.load_config()

    def is_complete(self) -> bool:
        """Whether the loaded configuration can reach the tracker."""
        try:
            return self.get_config().is_complete()
        except ConfigError as e:
            logger.debug(f"Configuration incomplete: {e}")
            return False

    def get_config_value(self, key: str) -> Any:
        """Get configuration value by dot-separated key (e.g. 'tracker.username').

        Raises:
            ConfigError: If key is not found
        """
        current: Any = self.get_config().model_dump(mode="json")

        try:
            for part in key.split("."):
                current = current[part]
            return current
        except (KeyError, TypeError):
            raise ConfigError(f"Configuration key not found: {key}")

    def _config_path(self, user_level: bool) -> Path:
        if user_level:
            return self._user_config_path
        if self._project_config_path is None:
            git_root = get_git_root() or Path.cwd()
            self._project_config_path = git_root / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        return self._project_config_path

    def _write_yaml_file(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                f.write("# pvgit configuration\n")
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            # The file holds an API token
            os.chmod(path, 0o600)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration to {path}: {e}")

    def set_config_value(self, key: str, value: Any, user_level: bool = True) -> None:
        """Set a configuration value and save it to file.

        The resulting configuration is validated before anything is written.

        Raises:
            ConfigError: If the value is invalid or the file cannot be saved
        """
        config_path = self._config_path(user_level)
        config_data = self._load_yaml_file(config_path)

        key_parts = key.split(".")
        current = config_data
        for part in key_parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[key_parts[-1]] = value

        try:
            Config.model_validate(self._expand_env_vars(config_data))
        except ValidationError as e:
            raise ConfigError(f"Invalid value for {key}: {e}")

        self._write_yaml_file(config_path, config_data)
        logger.info(f"Configuration saved to {config_path}: {key}")
        self.reload_config()

    def save_tracker_settings(
        self, username: str, api_token: str, project_ids: List[int]
    ) -> Path:
        """Write tracker credentials to the user configuration file.

        Raises:
            ConfigError: If the settings are invalid or cannot be saved
        """
        try:
            tracker = TrackerConfig(
                username=username, api_token=api_token, project_ids=project_ids
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid tracker settings: {e}")

        config_data = self._load_yaml_file(self._user_config_path)
        tracker_data = config_data.get("tracker")
        if not isinstance(tracker_data, dict):
            tracker_data = {}
        tracker_data.update(
            {
                "username": tracker.username,
                "api_token": tracker.api_token,
                "project_ids": tracker.project_ids,
            }
        )
        config_data["tracker"] = tracker_data
        config_data.setdefault("version", Config().version)

        self._write_yaml_file(self._user_config_path, config_data)
        logger.info(f"Tracker settings saved to {self._user_config_path}")
        self.reload_config()
        return self._user_config_path

    def list_config_files(self) -> Dict[str, Optional[Path]]:
        """List configuration file paths that are in effect."""
        return {
            "user": self._user_config_path if self._user_config_path.exists() else None,
            "project": self._project_config_path,
        }
