"""FileStore — the default store: one JSON file per pull request.

Layout under the workspace root:

    <root>/.prwarden/<owner>/<repo>/pr-<number>.json

The workspace root is typically the CI job's checkout or a cached directory
shared between runs. Each save writes a temp file next to the target and
renames it over the old one, so a crash mid-write never leaves a half-written
record behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from prwarden_store.base import BaseStore
from prwarden_store.models import StateKey, StateReadError, StateRecord

_STATE_DIR = ".prwarden"


class FileStore(BaseStore):
    def __init__(self, root: str = "."):
        self._root = Path(root)

    def path_for(self, key: StateKey) -> Path:
        return self._root / _STATE_DIR / key.owner / key.repo / f"pr-{key.number}.json"

    def _read(self, key: StateKey) -> StateRecord | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateReadError(f"cannot read {path}: {e}") from e
        if not content.strip():
            return None
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StateReadError(f"{path} is not valid JSON: {e}") from e
        return StateRecord.from_dict(data)

    def save(self, key: StateKey, record: StateRecord) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
