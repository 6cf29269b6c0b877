"""
Plugin support.

Key Components:
    - IterationPlugin: base class with before/after/on-error hooks
    - PluginManager: registry and ordered hook dispatch
    - ForEachCore: runs the async engines with registered hooks wired in
"""

from .base import IterationPlugin, PluginConfig
from .manager import ForEachCore, PluginManager, RegisteredPlugin

__all__ = [
    "IterationPlugin",
    "PluginConfig",
    "PluginManager",
    "RegisteredPlugin",
    "ForEachCore",
]
