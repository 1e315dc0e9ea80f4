"""Helpers for loading store configuration from TOML/JSON sources.

This module provides a single entry point `load_store_config` that accepts
various configuration sources:

* None -> default StoreConfig
* dict -> StoreConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from supplygraph.config.schema import StoreConfig

logger = logging.getLogger("supplygraph.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _detect_format(text: str) -> str:
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "toml"


def _is_file(path: Path) -> bool:
    # Inline documents can be too long or malformed to stat.
    try:
        return path.is_file()
    except (OSError, ValueError):
        return False


def load_mapping(source: Union[str, Path]) -> Dict[str, Any]:
    """Read a TOML or JSON mapping from a file path or an inline string.

    Args:
        source: Filesystem path to a .toml/.json file, or inline text.

    Returns:
        Parsed top-level mapping.

    Raises:
        ValueError: If the document does not have a mapping at the top level.
    """
    path = Path(source)
    text: Optional[str] = None
    fmt: Optional[str] = None

    if _is_file(path):
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            fmt = "toml"
        elif suffix == ".json":
            fmt = "json"
        else:
            fmt = _detect_format(text)
        logger.info("Loading mapping from file: %s (fmt=%s)", path, fmt)
    else:
        text = str(source)
        fmt = _detect_format(text)
        logger.info("Loading mapping from inline %s string", fmt)

    if fmt == "json":
        data = json.loads(text)
    else:
        data = tomllib.loads(text)

    if not isinstance(data, dict):
        raise ValueError("Top-level document must be a mapping/dict")
    return data


def load_store_config(source: ConfigSource) -> StoreConfig:
    """Load StoreConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns StoreConfig.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        StoreConfig instance.
    """
    if source is None:
        logger.debug("No config source provided; using default StoreConfig")
        return StoreConfig.default()

    if isinstance(source, dict):
        logger.debug("Loading StoreConfig from provided dict")
        return StoreConfig.from_dict(source)

    if isinstance(source, (str, Path)):
        return StoreConfig.from_dict(load_mapping(source))

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


__all__ = ["load_mapping", "load_store_config"]
