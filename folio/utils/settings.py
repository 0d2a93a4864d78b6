"""
Environment-backed settings for FOLIO.

Values come from the process environment, optionally seeded from a .env file.
Collaborators (compiler, page renderer, document serializer) are named as
"module.path:attribute" and imported on demand.
"""

import importlib
import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

load_dotenv()


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on" are truthy)."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_paths(name: str) -> List[str]:
    """Read an os.pathsep separated list of paths, skipping empty entries."""
    value = os.getenv(name, "")
    return [part for part in value.split(os.pathsep) if part.strip()]


def _default_data_home() -> Path:
    return Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def _default_cache_home() -> Path:
    return Path(os.getenv("XDG_CACHE_HOME", Path.home() / ".cache"))


FOLIO_ROOT = os.getenv("FOLIO_ROOT", ".")
FOLIO_FONT_PATHS = env_paths("FOLIO_FONT_PATHS")
FOLIO_IGNORE_SYSTEM_FONTS = env_flag("FOLIO_IGNORE_SYSTEM_FONTS")

PACKAGE_PATH = Path(os.getenv("FOLIO_PACKAGE_PATH", _default_data_home() / "typst" / "packages"))
PACKAGE_CACHE_PATH = Path(
    os.getenv("FOLIO_PACKAGE_CACHE_PATH", _default_cache_home() / "typst" / "packages")
)
PACKAGE_REGISTRY = os.getenv("FOLIO_PACKAGE_REGISTRY", "https://packages.typst.org")

LOGS_PATH = Path(os.getenv("FOLIO_LOGS_PATH", "outs/logs"))

# Collaborator settings: name of the environment variable -> role
COLLABORATOR_SETTINGS = {
    "compiler": "FOLIO_COMPILER",
    "renderer": "FOLIO_RENDERER",
    "serializer": "FOLIO_SERIALIZER",
}


def load_object(target: str) -> Any:
    """
    Import an object from a "module.path:attribute" reference.

    Args:
        target: Import reference, attribute may be dotted ("pkg.mod:Class.factory")

    Returns:
        The referenced object

    Raises:
        ValueError: If the reference is malformed or the attribute does not exist
        ImportError: If the module cannot be imported
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Invalid object reference '{target}' (expected 'module.path:attribute')")

    obj: Any = importlib.import_module(module_name)
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ValueError(f"'{module_name}' has no attribute '{attribute}'") from e
    return obj


def load_collaborator(role: str, target: Optional[str] = None) -> Any:
    """
    Instantiate a configured collaborator.

    Classes and factory functions are called without arguments; any other
    object is returned as-is.

    Args:
        role: One of "compiler", "renderer", "serializer"
        target: Explicit reference; defaults to the role's environment variable

    Raises:
        ValueError: If nothing is configured for the role
    """
    setting = COLLABORATOR_SETTINGS[role]
    if target is None:
        target = os.getenv(setting)
    if not target:
        raise ValueError(
            f"No {role} configured. Pass one explicitly or set {setting}='module.path:attribute'"
        )

    obj = load_object(target)
    return obj() if callable(obj) else obj
