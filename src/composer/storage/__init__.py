"""JSON-backed persistence helpers for installed applications."""

from .json_store import (
    COMPOSER_HOME_ENV_VAR,
    CONFIG_FILENAME,
    ApplicationStore,
    get_composer_directory,
)
from .manifest import MANIFEST_FILENAME, AppManifest, load_app_manifest
from .models import ApplicationState, PersistedApplication, StorageError

__all__ = [
    "COMPOSER_HOME_ENV_VAR",
    "CONFIG_FILENAME",
    "MANIFEST_FILENAME",
    "AppManifest",
    "ApplicationState",
    "ApplicationStore",
    "PersistedApplication",
    "StorageError",
    "get_composer_directory",
    "load_app_manifest",
]
