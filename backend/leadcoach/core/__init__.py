"""Core module - logging setup and shared helpers."""

from .logging_config import setup_logging, LoggerAdapter

__all__ = ['setup_logging', 'LoggerAdapter']
