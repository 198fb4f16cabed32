"""Shared utilities: paths, logging, errors and configuration."""
