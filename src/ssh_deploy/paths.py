"""Local path conventions used by ssh-deploy.

Runtime dependencies listed in a `*.deps.json` manifest are restored into the
global package store, laid out as::

    <store>/<package id, lowercase>/<version, lowercase>/<asset path>
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

DEFAULT_CONFIG_FILE = Path(".ssh-deploy.json")
PACKAGE_STORE_ENV = "NUGET_PACKAGES"


def global_packages_dir(override: Optional[str] = None) -> Path:
    """Return the root of the global package store."""
    if override:
        return Path(override).expanduser()
    env_value = os.getenv(PACKAGE_STORE_ENV)
    if env_value:
        return Path(env_value).expanduser()
    return Path.home() / ".nuget" / "packages"


def package_asset_path(store: Path, name: str, version: str, asset: str) -> Path:
    """Locate a package asset inside the store."""
    return store.joinpath(name.lower(), version.lower(), *asset.replace("\\", "/").split("/"))
