"""Settings loader

Reads the workspace settings file and builds a ``Config`` snapshot.

Accepted layouts (may be mixed, dotted keys win)::

    {"sync-rsync": {"remote": "host:/srv/app", "sites": [...]}}
    {"sync-rsync.remote": "host:/srv/app", "sync-rsync.sites": [...]}

Top-level site keys (``local``, ``remote``, ``delete``, ``flags``...) are the
defaults every site inherits; an empty site list yields a single site built
from them.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config import SETTINGS_FILE_CANDIDATES, SETTINGS_SECTION
from ..errors import SettingsError
from ..telemetry import get_logger
from .models import Config

logger = get_logger(__name__)

# top-level key -> site key
_SITE_DEFAULT_KEYS = {
    "local": "localPath",
    "remote": "remotePath",
    "delete": "deleteFiles",
    "flags": "flags",
    "exclude": "exclude",
    "include": "include",
    "chmod": "chmod",
    "shell": "shell",
    "executable": "executable",
    "executableShell": "executableShell",
    "options": "options",
    "args": "args",
    "preSyncUp": "preSyncUp",
    "postSyncUp": "postSyncUp",
    "preSyncDown": "preSyncDown",
    "postSyncDown": "postSyncDown",
    "afterSync": "afterSync",
}

_CONFIG_KEYS = (
    "autoShowOutput",
    "autoHideOutput",
    "autoShowOutputOnError",
    "notification",
    "showProgress",
    "useWSL",
    "onFileSave",
    "onFileSaveIndividual",
    "onFileLoadIndividual",
    "watchGlobs",
)


def find_settings_file(workspace: Path) -> Path | None:
    """First existing settings file under the workspace, if any."""
    for candidate in SETTINGS_FILE_CANDIDATES:
        path = workspace / candidate
        if path.is_file():
            return path
    return None


def extract_section(data: dict[str, Any], section: str = SETTINGS_SECTION) -> dict[str, Any]:
    """Collect the section's keys from nested and dotted layouts."""
    values: dict[str, Any] = {}
    nested = data.get(section)
    if isinstance(nested, dict):
        values.update(nested)

    prefix = f"{section}."
    for key, value in data.items():
        if key.startswith(prefix):
            values[key[len(prefix):]] = value
    return values


def _with_trailing_slash(path: str | None) -> str | None:
    if path and not path.endswith("/"):
        return path + "/"
    return path


def build_config(section: dict[str, Any], workspace: Path | None = None) -> Config:
    """Build a Config from an extracted settings section.

    Args:
        section: Keys of the ``sync-rsync`` section
        workspace: Workspace root, the default local path

    Raises:
        SettingsError: validation failed
    """
    defaults: dict[str, Any] = {}
    for key, site_key in _SITE_DEFAULT_KEYS.items():
        if section.get(key) is not None:
            defaults[site_key] = section[key]
    if "localPath" not in defaults and workspace is not None:
        defaults["localPath"] = workspace.as_posix()

    raw_sites = section.get("sites") or [{}]
    if not isinstance(raw_sites, list):
        raise SettingsError("sync-rsync: 'sites' must be a list")

    sites = []
    for raw in raw_sites:
        if not isinstance(raw, dict):
            raise SettingsError("sync-rsync: each site must be an object")
        merged = dict(defaults)
        merged.update({k: v for k, v in raw.items() if v is not None})
        merged["localPath"] = _with_trailing_slash(merged.get("localPath"))
        merged["remotePath"] = _with_trailing_slash(merged.get("remotePath"))
        sites.append(merged)

    raw_config = {key: section[key] for key in _CONFIG_KEYS if key in section}
    raw_config["sites"] = sites

    try:
        return Config.model_validate(raw_config)
    except ValidationError as e:
        raise SettingsError(f"sync-rsync: invalid settings: {e}") from e


def load_config(path: Path | None, workspace: Path | None = None) -> Config:
    """Load a Config from a settings file.

    A missing file yields the defaults (one site rooted at the workspace,
    no remote).

    Raises:
        SettingsError: unreadable or invalid file
    """
    if path is None or not path.exists():
        logger.debug(f"[Settings] No settings file, using defaults (path={path})")
        return build_config({}, workspace)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SettingsError(f"sync-rsync: cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError(f"sync-rsync: {path} must contain a JSON object")

    return build_config(extract_section(data), workspace)


class ConfigProvider:
    """Re-reads the settings file on every call.

    Commands call it at invocation time so edits take effect on the next
    operation without touching one already running.
    """

    def __init__(self, workspace: Path, path: Path | None = None):
        self.workspace = workspace
        self._path = path

    @property
    def path(self) -> Path | None:
        return self._path or find_settings_file(self.workspace)

    def __call__(self) -> Config:
        return load_config(self.path, self.workspace)
