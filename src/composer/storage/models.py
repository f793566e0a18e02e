"""Records persisted for installed applications."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping


class StorageError(RuntimeError):
    """Raised when application state cannot be read or written."""


class ApplicationState(str, Enum):
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class PersistedApplication:
    """An application tracked in ``config.json``."""

    id: str
    version: str
    timestamp: int
    state: ApplicationState
    app_name: str
    compose_path: str

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["state"] = self.state.value
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PersistedApplication":
        try:
            return cls(
                id=str(payload["id"]),
                version=str(payload["version"]),
                timestamp=int(payload["timestamp"]),
                state=ApplicationState(payload["state"]),
                app_name=str(payload["app_name"]),
                compose_path=str(payload["compose_path"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageError(f"Malformed application record: {payload!r}") from exc
