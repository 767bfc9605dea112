"""Configuration system for the trade interceptor with precedence handling.

Sources, highest precedence first:
overrides > environment variables > explicit config file > auto-discovered
config file > defaults
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..capture.browser_factory import BrowserConfig, BrowserEngineType, DEFAULT_LAUNCH_ARGS, DEFAULT_VIEWPORT
from ..capture.engine import InterceptionEngineConfig

logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Supported environment types."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def normalize(cls, env: str) -> str:
        """Normalize environment string to standard form."""
        env_map = {
            "dev": "development",
            "prod": "production",
        }
        return env_map.get(env.lower(), env.lower())


class BrowserSettings(BaseModel):
    """Browser launch options."""
    engine: str = Field(default=BrowserEngineType.CHROMIUM, description="Browser engine")
    headless: bool = Field(default=True, description="Run without a visible window")
    launch_args: List[str] = Field(default_factory=lambda: list(DEFAULT_LAUNCH_ARGS))
    viewport: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_VIEWPORT), description="Context viewport")
    user_agent: Optional[str] = Field(default=None, description="User-Agent override")
    locale: Optional[str] = Field(default=None, description="Browser locale")

    @field_validator('engine')
    @classmethod
    def validate_engine(cls, v):
        if v not in (BrowserEngineType.CHROMIUM, BrowserEngineType.FIREFOX, BrowserEngineType.WEBKIT):
            raise ValueError("engine must be one of: chromium, firefox, webkit")
        return v

    def to_browser_config(self) -> BrowserConfig:
        return BrowserConfig(
            engine=self.engine,
            headless=self.headless,
            launch_args=self.launch_args,
            viewport=self.viewport,
            user_agent=self.user_agent,
            locale=self.locale,
        )


class CaptureSettings(BaseModel):
    """Target site and timing options of the interception engine."""
    api_base: str = Field(default="https://www.pathofexile.com/api/trade2", description="Trade API base URL")
    excluded_paths: List[str] = Field(
        default_factory=lambda: ["/api/trade2/data"],
        description="API sub-paths that are never recorded"
    )
    cookie_domain: str = Field(default=".pathofexile.com", description="Domain for supplied cookies")
    navigation_timeout_ms: int = Field(default=30000, ge=1000, description="Navigation timeout")
    settle_delay_ms: int = Field(default=3000, ge=0, description="Wait after network idle")
    poll_interval_ms: int = Field(default=500, ge=10, description="Correlation scan interval")
    poll_deadline_ms: int = Field(default=15000, ge=0, description="Correlation wait bound")
    items_field: str = Field(default="result", description="Fetch response field holding items")
    max_concurrent_sessions: int = Field(default=5, ge=0, description="Open session bound (0 = unbounded)")
    continue_on_navigation_timeout: bool = Field(default=False)


class ServerSettings(BaseModel):
    """HTTP server options."""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


class InterceptorSettings(BaseModel):
    """Complete configuration with all sections."""

    environment: str = Field(default="development", description="Deployment environment")
    dev_cookies: Optional[str] = Field(default=None, description="Default cookies for development")
    log_level: str = Field(default="INFO", description="Root logging level")

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    config_file_path: Optional[Path] = Field(default=None, description="Source config file")
    loaded_from: List[str] = Field(default_factory=list, description="Configuration sources")

    @field_validator('environment')
    @classmethod
    def normalize_environment(cls, v):
        return Environment.normalize(v)

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v):
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level

    @property
    def is_development(self) -> bool:
        return self.environment != Environment.PRODUCTION.value

    def to_engine_config(self) -> InterceptionEngineConfig:
        """Build the engine configuration from these settings."""
        capture = self.capture
        return InterceptionEngineConfig(
            browser_config=self.browser.to_browser_config(),
            api_base=capture.api_base,
            excluded_paths=capture.excluded_paths,
            cookie_domain=capture.cookie_domain,
            default_credentials=self.dev_cookies if self.is_development else None,
            navigation_timeout_ms=capture.navigation_timeout_ms,
            settle_delay_ms=capture.settle_delay_ms,
            poll_interval_ms=capture.poll_interval_ms,
            poll_deadline_ms=capture.poll_deadline_ms,
            continue_on_navigation_timeout=capture.continue_on_navigation_timeout,
            items_field=capture.items_field,
            max_concurrent_sessions=capture.max_concurrent_sessions or None,
        )


class ConfigurationLoader:
    """Loads and merges configuration from multiple sources with proper precedence."""

    ENV_PREFIX = "TRADE_INTERCEPTOR_"

    DEFAULT_CONFIG_FILES = [
        "trade_interceptor.yaml",
        "trade_interceptor.yml",
        ".trade_interceptor.yaml",
        "trade_interceptor.json",
    ]

    ENV_MAPPING = {
        "ENVIRONMENT": "environment",
        "DEV_COOKIES": "dev_cookies",
        "LOG_LEVEL": "log_level",
        "BROWSER_ENGINE": "browser.engine",
        "HEADLESS": "browser.headless",
        "USER_AGENT": "browser.user_agent",
        "API_BASE": "capture.api_base",
        "COOKIE_DOMAIN": "capture.cookie_domain",
        "NAVIGATION_TIMEOUT_MS": "capture.navigation_timeout_ms",
        "SETTLE_DELAY_MS": "capture.settle_delay_ms",
        "POLL_INTERVAL_MS": "capture.poll_interval_ms",
        "POLL_DEADLINE_MS": "capture.poll_deadline_ms",
        "MAX_CONCURRENT_SESSIONS": "capture.max_concurrent_sessions",
        "HOST": "server.host",
        "PORT": "server.port",
    }

    BOOLEAN_KEYS = ('.headless',)
    INTEGER_KEYS = (
        '.navigation_timeout_ms', '.settle_delay_ms', '.poll_interval_ms',
        '.poll_deadline_ms', '.max_concurrent_sessions', '.port',
    )

    def __init__(self):
        self.loaded_sources: List[str] = []

    def load_configuration(
        self,
        config_file: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None,
        search_paths: Optional[List[Path]] = None
    ) -> InterceptorSettings:
        """Load configuration with proper precedence.

        Args:
            config_file: Explicitly specified config file
            overrides: Highest-precedence values (e.g. CLI flags)
            search_paths: Paths to search for config files

        Returns:
            Merged configuration
        """
        self.loaded_sources = ["defaults"]
        config_data: Dict[str, Any] = {}

        if config_file:
            if not config_file.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            config_data = self._merge_config(config_data, self._load_config_file(config_file))
            self.loaded_sources.append(f"config file: {config_file}")
        else:
            discovered = self._discover_config_file(search_paths or [Path.cwd()])
            if discovered:
                source = discovered.pop("_source_file")
                config_data = self._merge_config(config_data, discovered)
                self.loaded_sources.append(f"auto-discovered: {source}")

        env_config = self._load_environment_variables()
        if env_config:
            config_data = self._merge_config(config_data, env_config)
            self.loaded_sources.append("environment variables")

        if overrides:
            config_data = self._merge_config(config_data, overrides)
            self.loaded_sources.append("overrides")

        config_data["loaded_from"] = self.loaded_sources
        if config_file:
            config_data["config_file_path"] = config_file

        settings = InterceptorSettings(**config_data)
        logger.debug(f"Configuration loaded from: {', '.join(self.loaded_sources)}")
        return settings

    def _discover_config_file(self, search_paths: List[Path]) -> Optional[Dict[str, Any]]:
        """Discover configuration file in search paths."""
        for search_path in search_paths:
            for config_filename in self.DEFAULT_CONFIG_FILES:
                config_path = search_path / config_filename
                if config_path.exists() and config_path.is_file():
                    config_data = self._load_config_file(config_path)
                    config_data["_source_file"] = str(config_path)
                    return config_data
        return None

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Load configuration from a YAML or JSON file."""
        try:
            content = config_path.read_text(encoding='utf-8')

            if config_path.suffix.lower() in ['.yaml', '.yml']:
                return yaml.safe_load(content) or {}
            elif config_path.suffix.lower() == '.json':
                return json.loads(content)
            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        for suffix, config_path in self.ENV_MAPPING.items():
            env_value = os.getenv(f"{self.ENV_PREFIX}{suffix}")
            if env_value is not None:
                converted_value = self._convert_env_value(env_value, config_path)
                self._set_nested_value(config, config_path, converted_value)

        return config

    def _convert_env_value(self, value: str, config_path: str) -> Any:
        """Convert environment variable string to appropriate type."""
        if config_path.endswith(self.BOOLEAN_KEYS):
            return value.lower() in ('true', '1', 'yes', 'on')

        if config_path.endswith(self.INTEGER_KEYS):
            return int(value)

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any):
        """Set a nested configuration value using dot notation."""
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            current = current.setdefault(key, {})

        current[keys[-1]] = value

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration dictionaries, with override taking precedence."""
        if not override:
            return base

        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result


def load_settings(
    config_file: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    search_paths: Optional[List[Path]] = None
) -> InterceptorSettings:
    """Load settings using the default loader."""
    return ConfigurationLoader().load_configuration(
        config_file=config_file,
        overrides=overrides,
        search_paths=search_paths,
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
