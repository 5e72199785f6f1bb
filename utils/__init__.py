"""Shared helpers: project logging and YAML settings."""
