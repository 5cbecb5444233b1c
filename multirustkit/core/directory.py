"""
Directory layout of the multirust home.

Home Directory ($MULTIRUST_HOME or ~/.multirust):
    - toolchains/     : One installation prefix per toolchain name
    - update-hash/    : Last installed distribution hash per toolchain
    - tmp/            : Staging area for installs and downloads
    - lock/           : Cross-process lock files
    - overrides.json  : Override database
    - default         : Name of the default toolchain
    - version         : Metadata version marker
    - settings.yaml   : Optional user settings
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from multirustkit.core.exceptions import WorkingDirectoryUnavailable

HOME_ENV_VAR = "MULTIRUST_HOME"

TOOLCHAINS_DIR = "toolchains"
UPDATE_HASH_DIR = "update-hash"
TEMP_DIR = "tmp"
LOCK_DIR = "lock"
OVERRIDES_FILE = "overrides.json"
LEGACY_OVERRIDES_FILE = "overrides"
DEFAULT_FILE = "default"
VERSION_FILE = "version"
SETTINGS_FILE = "settings.yaml"


def get_multirust_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Get the multirust home directory.

    `$MULTIRUST_HOME` wins when set and non-empty; otherwise `~/.multirust`.

    Example:
        >>> get_multirust_home({"MULTIRUST_HOME": "/opt/multirust"})
        PosixPath('/opt/multirust')
    """
    environ = os.environ if environ is None else environ
    override = environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser().absolute()
    return Path.home() / ".multirust"


def ensure_home_structure(home: Path) -> Path:
    """Create the home directory and its fixed subdirectories."""
    for sub in (TOOLCHAINS_DIR, UPDATE_HASH_DIR, TEMP_DIR):
        (home / sub).mkdir(parents=True, exist_ok=True)
    return home


def current_dir() -> Path:
    """
    Return the current working directory.

    Raises:
        WorkingDirectoryUnavailable: If the directory was removed or is unreadable
    """
    try:
        return Path.cwd()
    except OSError as e:
        raise WorkingDirectoryUnavailable(str(e)) from e
