"""Default constants and YAML option loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import ValidationError
from .types import AsyncOptions, ChunkedOptions, ForEachOptions, LazyOptions, resolve_options

DEFAULT_CONCURRENCY = 10
MAX_CONCURRENCY = 1000
DEFAULT_CHUNK_CONCURRENCY = 1
MAX_CHUNK_SIZE = 10000
DEFAULT_BUFFER_SIZE = 10
MAX_BUFFER_SIZE = 10000

OPTION_KINDS = {
    "sync": ForEachOptions,
    "async": AsyncOptions,
    "chunked": ChunkedOptions,
    "lazy": LazyOptions,
}


def load_options(path: str | Path, kind: str = "async") -> Any:
    """
    Load an options record from a YAML file.

    Args:
        path: YAML file holding a mapping of option names to values
        kind: One of "sync", "async", "chunked", "lazy"

    Returns:
        A validated options record of the requested kind
    """
    # validators depends on the constants above
    from .utils import validators

    if kind not in OPTION_KINDS:
        raise ValueError(f"Unknown options kind '{kind}'. Must be one of {list(OPTION_KINDS)}")

    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ValidationError(
            "Options file must contain a mapping",
            {"path": str(path), "received": type(data).__name__},
        )

    options = resolve_options(OPTION_KINDS[kind], data)
    check = {
        "sync": validators.validate_for_each_options,
        "async": validators.validate_async_options,
        "chunked": validators.validate_chunked_options,
        "lazy": validators.validate_lazy_options,
    }[kind]
    check(options)
    return options
