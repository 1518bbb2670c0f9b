"""
Configuration module.

Configuration keys, defaults, YAML loading with per-device overrides,
and validation.
"""
