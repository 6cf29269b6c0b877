"""Plugin base class and registration config."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..types import IterationContext


@dataclass(frozen=True)
class PluginConfig:
    """Registration options.

    Attributes:
        auto_enable: Plugin starts enabled
        allow_override: Replace an already registered plugin of the same name
    """

    auto_enable: bool = True
    allow_override: bool = False


class IterationPlugin:
    """
    Observer of per-element lifecycle events.

    Subclasses set ``name`` and ``version`` and override any of the hooks;
    hooks may be plain or coroutine functions. Lifecycle methods
    (``on_install`` and friends) are called by the PluginManager.

    Example:
        >>> class Counter(IterationPlugin):
        ...     name = "counter"
        ...     version = "1.0.0"
        ...     def __init__(self):
        ...         self.seen = 0
        ...     def after_iteration(self, context):
        ...         self.seen += 1
    """

    name: str = ""
    version: str = ""

    def before_iteration(self, context: IterationContext) -> Optional[Any]:
        return None

    def after_iteration(self, context: IterationContext) -> Optional[Any]:
        return None

    def on_error(self, error: BaseException, context: IterationContext) -> Optional[Any]:
        return None

    def on_install(self) -> None:
        pass

    def on_uninstall(self) -> None:
        pass

    def on_enable(self) -> None:
        pass

    def on_disable(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, version={self.version!r})"
