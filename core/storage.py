import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("storage")

# Durable state namespaces, one JSON file each
BROWSER_CONFIG = "browserConfig"
CONVERSATION_CONTEXT = "conversationContext"
SCHEDULED_TASKS = "scheduledTasks"


class StorageError(Exception):
    """Base class for durable storage failures."""

    def __init__(self, namespace: str, cause: Exception):
        super().__init__(f"{namespace}: {cause}")
        self.namespace = namespace
        self.cause = cause


class ConfigLoadFailure(StorageError):
    """Persisted data exists but could not be read or parsed."""


class PersistFailure(StorageError):
    """A snapshot could not be written to disk."""


class JsonStore:
    """
    Namespaced JSON snapshots on disk.

    Every write replaces the whole namespace file. Callers own the
    recovery policy: stores catch ConfigLoadFailure / PersistFailure,
    log them and keep going with defaults or in-memory state.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, namespace: str) -> Path:
        return self.root / f"{namespace}.json"

    def exists(self, namespace: str) -> bool:
        return self.path_for(namespace).exists()

    def read(self, namespace: str) -> Optional[Any]:
        """Return the stored snapshot, or None when nothing was persisted yet."""
        path = self.path_for(namespace)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigLoadFailure(namespace, e) from e

    def write(self, namespace: str, data: Any) -> None:
        path = self.path_for(namespace)
        try:
            payload = json.dumps(data, indent=2)
            path.parent.mkdir(parents=True, exist_ok=True)
            # Readers only ever see a complete snapshot
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{namespace}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistFailure(namespace, e) from e

    def delete(self, namespace: str) -> None:
        self.path_for(namespace).unlink(missing_ok=True)
