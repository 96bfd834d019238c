# src/stark_consolidator/utils/config_manager.py
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import yaml

T = TypeVar('T')
_CONFIG_MANAGER_INSTANCE = None

ENV_PREFIX = "STARK_"


def get_config_manager(project_name="stark-consolidator", config_file=None, cli_args=None):
    """Shared ConfigurationManager; created on first use."""
    global _CONFIG_MANAGER_INSTANCE
    if _CONFIG_MANAGER_INSTANCE is None:
        _CONFIG_MANAGER_INSTANCE = ConfigurationManager(project_name, config_file, cli_args=cli_args)
    return _CONFIG_MANAGER_INSTANCE


DEFAULT_CONFIG_SCHEMA = {
    # Output
    "OUTPUT_DIR": {
        "type": "path",
        "default": "./output",
        "description": "Base directory for reports, charts and logs",
        "aliases": ["output_dir"]
    },
    "REPORT_FORMATS": {
        "type": "list",
        "default": ["excel", "json"],
        "description": "Report files written by the CLI",
        "aliases": ["formats"]
    },
    "CREATE_CHARTS": {
        "type": "bool",
        "default": False,
        "description": "Render severity/category charts next to the report",
        "aliases": ["charts"]
    },
    "MAX_EXAMPLE_SNIPPETS": {
        "type": "int",
        "default": 3,
        "description": "Example snippets per issue shown in the Excel report",
        "aliases": ["report_snippets"]
    },
    "SNIPPET_MAX_LENGTH": {
        "type": "int",
        "default": 420,
        "description": "Maximum characters of an example snippet in report cells",
        "aliases": ["snippet_max_length"]
    },

    # Parsing
    "PARSE_MAX_WORKERS": {
        "type": "int",
        "default": 1,
        "description": "Parallel parse workers (1 = sequential)",
        "aliases": ["max_workers", "workers"]
    },
    "FILE_ENCODING": {
        "type": "str",
        "default": "utf-8",
        "description": "Encoding used to read export files",
        "aliases": ["encoding"]
    },

    # Logging
    "LOG_LEVEL": {
        "type": "str",
        "default": "INFO",
        "description": "Log level",
        "allowed_values": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        "aliases": ["log_level"]
    },
    "LOG_DIR": {
        "type": "path",
        "default": None,
        "description": "Log directory (defaults to the run's logs directory)",
        "aliases": ["log_dir"]
    },
    "LOG_CONSOLE": {
        "type": "bool",
        "default": True,
        "description": "Also log to stdout",
        "aliases": ["log_console"]
    },
}


class ConfigurationManager:
    """
    Centralized configuration that merges several sources:
    - Command-line arguments (highest priority)
    - Environment variables (STARK_ prefix)
    - Configuration file (.json, .yaml)
    - Schema defaults (lowest priority)
    """

    def __init__(
        self,
        project_name: str = "stark-consolidator",
        config_file: Optional[Union[str, Path]] = None,
        cli_args: Optional[Dict[str, Any]] = None,
        config_schema: Optional[Dict[str, Dict[str, Any]]] = None,
        environ: Optional[Dict[str, str]] = None
    ):
        """
        Args:
            project_name: Project name (used for config search paths)
            config_file: Explicit configuration file
            cli_args: Values coming from the command line; None values are ignored
            config_schema: Custom schema replacing DEFAULT_CONFIG_SCHEMA
            environ: Environment mapping (defaults to os.environ)
        """
        self.project_name = project_name
        self.config_file = self._find_config_file(config_file)
        self.cli_args = {k: v for k, v in (cli_args or {}).items() if v is not None}
        self.environ = os.environ if environ is None else environ
        self.config_schema = config_schema or DEFAULT_CONFIG_SCHEMA.copy()
        self.aliases = self._build_alias_mapping()

        # Plain logger here; get_logger() itself depends on this class
        self.logger = logging.getLogger(__name__)

        self._file_config: Dict[str, Any] = {}
        self._config_cache: Dict[str, Any] = {}

        self.reload_config()

    def _build_alias_mapping(self) -> Dict[str, str]:
        """Map every alias to its standard key."""
        aliases = {}
        for key, config in self.config_schema.items():
            for alias in config.get("aliases", []):
                aliases[alias] = key
        return aliases

    def _find_config_file(self, config_file: Optional[Union[str, Path]]) -> Optional[Path]:
        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Configuration file not found: {path}")
            return path
        search_paths = [
            Path.cwd() / 'config.json',
            Path.cwd() / 'config.yaml',
            Path.cwd() / 'config.yml',
            Path.cwd().parent / 'config.json',
            Path.home() / self.project_name / 'config.json',
        ]
        for path in search_paths:
            if path.exists():
                return path
        return None

    def reload_config(self) -> bool:
        """Reload the configuration file and clear cached values."""
        self._config_cache = {}
        self._load_file_config()
        self.logger.debug(f"Configuration loaded (file: {self.config_file})")
        return True

    def _load_file_config(self) -> Dict[str, Any]:
        self._file_config = {}
        if not self.config_file or not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                if self.config_file.suffix.lower() in ('.yaml', '.yml'):
                    loaded = yaml.safe_load(f)
                else:
                    loaded = json.load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            self.logger.error(f"Error loading configuration file {self.config_file}: {e}")
            return {}
        if not isinstance(loaded, dict):
            self.logger.error(f"Configuration file {self.config_file} must contain a mapping")
            return {}
        self._file_config = loaded
        return self._file_config

    def _normalize_key(self, key: str) -> str:
        """Translate aliases to their standard key."""
        if key in self.config_schema:
            return key
        return self.aliases.get(key, key)

    def _aliases_of(self, std_key: str, key: str) -> List[str]:
        aliases = [key] if key != std_key else []
        aliases.extend(a for a in self.config_schema.get(std_key, {}).get("aliases", []) if a != key)
        return aliases

    def get(
        self,
        key: str,
        default: Optional[T] = None,
        transform: Optional[Callable[[Any], T]] = None,
        use_cache: bool = True
    ) -> T:
        """
        Get a configuration value.

        Priority order:
        1. Command-line arguments
        2. Environment variables (STARK_<KEY>)
        3. Configuration file (standard key or alias)
        4. Provided default, then schema default
        """
        std_key = self._normalize_key(key)

        cache_key = f"{std_key}_{key}"
        if use_cache and cache_key in self._config_cache:
            return self._config_cache[cache_key]

        schema_default = self.config_schema.get(std_key, {}).get('default')
        final_default = default if default is not None else schema_default

        if std_key in self.cli_args:
            value, source = self.cli_args[std_key], "CLI args"
        elif key in self.cli_args:
            value, source = self.cli_args[key], "CLI args (alias)"
        elif f"{ENV_PREFIX}{std_key}" in self.environ:
            value, source = self.environ[f"{ENV_PREFIX}{std_key}"], "environment"
        elif std_key in self._file_config:
            value, source = self._file_config[std_key], "config file"
        else:
            file_alias = next((a for a in self._aliases_of(std_key, key) if a in self._file_config), None)
            if file_alias is not None:
                value, source = self._file_config[file_alias], f"config file (alias {file_alias})"
            else:
                value, source = final_default, "default value"

        if transform and value is not None:
            try:
                value = transform(value)
            except (TypeError, ValueError) as e:
                self.logger.warning(f"Error transforming value for {key}: {e}")
                value = final_default

        value = self._validate(std_key, value)

        self.logger.debug(f"Config get: {key} ({std_key}) = {value} (from {source})")
        self._config_cache[cache_key] = value
        return value

    def _validate(self, std_key: str, value: Any) -> Any:
        schema = self.config_schema.get(std_key)
        if not schema or value is None:
            return value

        expected_type = schema.get('type')
        if expected_type == 'int' and not isinstance(value, int):
            try:
                value = int(value)
            except (ValueError, TypeError):
                raise ValueError(f"Invalid value for {std_key} (expected int): {value!r}")
        elif expected_type == 'float' and not isinstance(value, float):
            try:
                value = float(value)
            except (ValueError, TypeError):
                raise ValueError(f"Invalid value for {std_key} (expected float): {value!r}")
        elif expected_type == 'bool':
            value = self._to_bool(value, schema.get('default'))
        elif expected_type == 'list':
            value = self._to_list(value)
        elif expected_type == 'path':
            value = Path(os.path.expandvars(str(value))).expanduser()
        elif expected_type == 'str':
            value = str(value)

        allowed_values = schema.get('allowed_values')
        if allowed_values and value not in allowed_values:
            raise ValueError(f"Invalid value for {std_key}: {value!r}. Allowed values: {allowed_values}")
        return value

    def _to_bool(self, value: Any, default: Optional[bool]) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in ('1', 'true', 'yes', 'y', 'on'):
                return True
            if lowered in ('0', 'false', 'no', 'n', 'off'):
                return False
        return bool(value) if value is not None else bool(default)

    def _to_list(self, value: Any, separator: str = ',') -> List[str]:
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        if isinstance(value, str):
            if value in ('[]', '""', "''", ''):
                return []
            return [item.strip() for item in value.split(separator) if item.strip()]
        return [str(value)]

    def get_bool(self, key: str, default: Optional[bool] = None) -> bool:
        return bool(self.get(key, default))

    def get_int(self, key: str, default: Optional[int] = None) -> int:
        return int(self.get(key, default))

    def get_list(self, key: str, default: Optional[List[str]] = None) -> List[str]:
        value = self.get(key, default)
        return list(value) if value is not None else []

    def get_path(self, key: str, default: Optional[Union[str, Path]] = None, create: bool = False) -> Path:
        """Get a path, expanding variables and optionally creating the directory."""
        path = self.get(key, default, lambda v: Path(os.path.expandvars(str(v))).expanduser())
        if create and path:
            Path(path).mkdir(parents=True, exist_ok=True)
        return Path(path)

    def get_logging_config(self) -> Dict[str, Any]:
        """
        Logging configuration for get_logger().

        Every module logs under the "stark_consolidator" logger hierarchy,
        so configuring that one component routes all package output.

        The component "log_dir" is only set when LOG_DIR is configured;
        otherwise get_logger() uses the run's logs directory, or the
        global "log_dir" (<OUTPUT_DIR>/logs) without an output manager.

        Returns:
            Dict with the global settings and a "components" mapping
        """
        level = self.get("LOG_LEVEL")
        explicit_log_dir = self.get("LOG_DIR")
        log_dir = explicit_log_dir or self.get_path("OUTPUT_DIR") / "logs"
        console = self.get_bool("LOG_CONSOLE")

        return {
            "level": level,
            "log_dir": str(log_dir),
            "console_output": console,
            "components": {
                "stark_consolidator": {
                    "level": level,
                    "log_file": "stark_consolidator.log",
                    "log_dir": str(explicit_log_dir) if explicit_log_dir else None,
                    "console_output": console,
                },
            }
        }

    def dump_config(self) -> Dict[str, Any]:
        """Every schema value as resolved right now (paths as strings)."""
        config = {
            "config_file": str(self.config_file) if self.config_file else None,
            "cli_args": dict(self.cli_args),
            "computed": {},
        }
        for key in self.config_schema:
            value = self.get(key)
            config["computed"][key] = str(value) if isinstance(value, Path) else value
        return config

    def log_config_summary(self) -> None:
        self.logger.info("=== Configuration summary ===")
        self.logger.info(f"Configuration file: {self.config_file}")
        self.logger.info(f"Output directory: {self.get_path('OUTPUT_DIR')}")
        self.logger.info(f"Report formats: {', '.join(self.get_list('REPORT_FORMATS'))}")
        self.logger.info(f"Parse workers: {self.get_int('PARSE_MAX_WORKERS')}")
