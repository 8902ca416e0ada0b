"""
Version information for tailwind-connect.

An installed distribution reports its metadata version. A source checkout
has no metadata, so ``[project].version`` is read from pyproject.toml.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION = "tailwind-connect"
DEFAULT_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def _pyproject_version(path: pathlib.Path) -> Optional[str]:
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return None


def get_version() -> str:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return _pyproject_version(PYPROJECT) or DEFAULT_VERSION


__version__ = get_version()
