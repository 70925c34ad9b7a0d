"""Application-level exception types for nestrun."""

from __future__ import annotations


class NestrunError(Exception):
    """Base exception for nestrun."""


class ConfigurationError(NestrunError):
    """Base exception for configuration and startup validation errors."""


class InvalidGeometryError(ConfigurationError, ValueError):
    """Raised when a screen geometry is not of the form WIDTHxHEIGHT."""
