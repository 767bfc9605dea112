"""Configuration loading for the trade interceptor."""

from .loader import (
    BrowserSettings,
    CaptureSettings,
    ServerSettings,
    InterceptorSettings,
    ConfigurationLoader,
    Environment,
    load_settings,
    configure_logging,
)

__all__ = [
    'BrowserSettings',
    'CaptureSettings',
    'ServerSettings',
    'InterceptorSettings',
    'ConfigurationLoader',
    'Environment',
    'load_settings',
    'configure_logging',
]
