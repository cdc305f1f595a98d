"""Configuration management for CloudResolve."""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError, ErrorCodes


DEFAULT_PROVIDERS: Dict[str, Dict[str, str]] = {
    "AWS": {
        "url": "https://ip-ranges.amazonaws.com/ip-ranges.json",
        "format": "aws",
    },
    "Cloudflare": {
        "url": "https://www.cloudflare.com/ips-v4",
        "format": "plaintext",
    },
    "Cloudflare6": {
        "url": "https://www.cloudflare.com/ips-v6",
        "format": "plaintext",
        "provider": "Cloudflare",
    },
    "Azure": {
        "url": "https://download.microsoft.com/download/7/1/D/71D86715-5596-4529-9B13-DA13A5DE5B63/ServiceTags_Public_20221212.json",
        "format": "azure",
    },
    "GCP": {
        "url": "https://www.gstatic.com/ipranges/cloud.json",
        "format": "google",
    },
}

DEFAULTS: Dict[str, Any] = {
    "resolver": {
        "timeout": 10,
        "port": 53,
        "record_types": ["A", "AAAA"],
    },
    "concurrency": {
        "max_workers": 50,
    },
    "feeds": {
        "cache_file": "ip-ranges.json",
        "timeout": 30,
        "providers": DEFAULT_PROVIDERS,
    },
    "output": {
        "directory": "./output",
        "timestamp_format": "%Y-%m-%d_%H-%M-%S",
    },
    "logging": {
        "level": "INFO",
        "format": "json",
        "file": None,
    },
}


# Keys whose mapping replaces the default instead of merging into it.
# A provider list is taken as declared: its order is match precedence.
REPLACED_KEYS = {"feeds.providers"}


def _merge(base: Dict[str, Any], override: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        path = f"{prefix}{key}"
        if path in REPLACED_KEYS:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value, prefix=f"{path}.")
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration manager that loads settings from YAML and environment variables."""

    def __init__(self, config_path: Optional[str] = None, env_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config.yaml file. When omitted, ``config.yaml``
                in the working directory is used if present, otherwise the
                built-in defaults.
            env_path: Path to .env.local file
        """
        if env_path:
            load_dotenv(env_path)
        else:
            env_file = Path.cwd() / ".env.local"
            if env_file.exists():
                load_dotenv(env_file)

        if config_path:
            self.config_path: Optional[Path] = Path(config_path)
            if not self.config_path.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_path}",
                    error=ErrorCodes.CONFIG_FILE_NOT_FOUND,
                )
        else:
            candidate = Path.cwd() / "config.yaml"
            self.config_path = candidate if candidate.exists() else None

        self.base_dir = self.config_path.resolve().parent if self.config_path else Path.cwd()
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file on top of the defaults."""
        if self.config_path is None:
            return copy.deepcopy(DEFAULTS)

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{self.config_path}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{self.config_path}: top level must be a mapping")

        return _merge(DEFAULTS, loaded)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'resolver.timeout')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

            if value is None:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Override a configuration value using dot notation."""
        keys = key.split(".")
        target = self._config
        for k in keys[:-1]:
            target = target.setdefault(k, {})
        target[keys[-1]] = value

    def _resolve_path(self, value: str) -> Path:
        path = Path(value)
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    @property
    def resolver_timeout(self) -> float:
        """Per-lookup DNS timeout in seconds."""
        env_value = os.getenv("CLOUDRESOLVE_DNS_TIMEOUT")
        if env_value:
            try:
                return float(env_value)
            except ValueError as e:
                raise ConfigurationError(f"CLOUDRESOLVE_DNS_TIMEOUT={env_value!r} is not a number") from e
        return float(self.get("resolver.timeout", 10))

    @property
    def resolver_port(self) -> int:
        return int(self.get("resolver.port", 53))

    @property
    def record_types(self) -> List[str]:
        return [str(t).upper() for t in self.get("resolver.record_types", ["A", "AAAA"])]

    @property
    def max_workers(self) -> int:
        """Upper bound on concurrent lookups."""
        return int(self.get("concurrency.max_workers", 50))

    @property
    def feed_timeout(self) -> float:
        return float(self.get("feeds.timeout", 30))

    @property
    def feed_providers(self) -> Dict[str, Dict[str, str]]:
        """Feed name -> {url, format[, provider]} mapping, in declaration order."""
        return dict(self.get("feeds.providers", {}))

    @property
    def cache_file(self) -> Path:
        """Location of the cached provider range table."""
        env_value = os.getenv("CLOUDRESOLVE_CACHE_FILE")
        return self._resolve_path(env_value or self.get("feeds.cache_file", "ip-ranges.json"))

    @property
    def output_dir(self) -> Path:
        """Get output directory path."""
        path = self._resolve_path(self.get("output.directory", "./output"))
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_file(self) -> Optional[Path]:
        """Log file path, or None when file logging is disabled."""
        log_file = self.get("logging.file")
        if not log_file:
            return None
        return self._resolve_path(log_file)
