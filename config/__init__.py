"""Configuration package."""

from .probe_config import ProbeConfig, load_config

__all__ = ["ProbeConfig", "load_config"]
