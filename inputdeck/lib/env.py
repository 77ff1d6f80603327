"""Environment variable utilities for deck documents.

Expands ${VAR_NAME} patterns in string values of a parsed document and
loads .env files.

Uses python-dotenv for .env file loading.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

__all__ = ["expand_env_vars", "expand_document", "load_env_file"]

# Pattern for ${VAR_NAME} or $VAR_NAME
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def load_env_file(
    path: Optional[Union[str, Path]] = None,
    *,
    override: bool = False,
) -> bool:
    """Load environment variables from a .env file.

    Args:
        path: Path to .env file. If None, searches for .env in current
              directory and parent directories.
        override: If True, override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    return load_dotenv(dotenv_path=path, override=override)


def expand_env_vars(value: str, *, strict: bool = False) -> str:
    """Expand environment variables in a string.

    Supports both ${VAR_NAME} and $VAR_NAME syntax.

    Args:
        value: String potentially containing env var references
        strict: If True, raise KeyError for missing variables

    Returns:
        String with environment variables expanded

    Example:
        >>> os.environ["MESH_DIR"] = "/data/meshes"
        >>> expand_env_vars("${MESH_DIR}/disk.mesh")
        '/data/meshes/disk.mesh'
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1) or match.group(2)
        env_value = os.environ.get(var_name)
        if env_value is None:
            if strict:
                raise KeyError(f"Environment variable not set: {var_name}")
            # Return original if not strict
            return str(match.group(0))
        return env_value

    return ENV_VAR_PATTERN.sub(replacer, value)


def expand_document(document: Any, *, strict: bool = False) -> Any:
    """Recursively expand environment variables in a parsed document.

    Mappings keep their keys (integer array indices included); only string
    values are expanded.

    Args:
        document: Parsed document (mapping, list or scalar)
        strict: If True, raise KeyError for missing variables

    Returns:
        New document with env vars expanded in string values
    """
    if isinstance(document, str):
        return expand_env_vars(document, strict=strict)
    if isinstance(document, dict):
        result: Dict[Any, Any] = {}
        for key, value in document.items():
            result[key] = expand_document(value, strict=strict)
        return result
    if isinstance(document, list):
        return [expand_document(item, strict=strict) for item in document]
    return document
