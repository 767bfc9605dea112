"""Command-line interface for the trade interceptor."""

from .main import app

__all__ = ['app']
