"""Shared helpers: logging setup and runtime configuration."""
