"""YAML configuration for cookie settings."""
