"""GistStore — zero-infrastructure shared review state via GitHub Gist.

Useful when runs happen on ephemeral CI machines with no shared disk: the
state lives next to the code on GitHub, and the token that posts reviews can
usually read and write it too (a PAT with 'gist' scope).

Data format: one JSON file per pull request inside the Gist, named
`<owner>__<repo>__<number>.json`, holding a single state record.
"""

from __future__ import annotations

import json
import logging

from prwarden_store.base import BaseStore
from prwarden_store.models import StateKey, StateReadError, StateRecord

logger = logging.getLogger(__name__)


class GistStore(BaseStore):
    """Stores each pull request's state as a separate file in one Gist.

    The Gist ID is stored in .prwarden.yml under `gist_id`.
    """

    def __init__(self, gist_id: str, token: str):
        try:
            from github import Github
        except ImportError:
            raise ImportError("PyGithub is required for GistStore.")
        self._gist_id = gist_id
        self._gh = Github(token)

    @staticmethod
    def filename_for(key: StateKey) -> str:
        return f"{key.owner}__{key.repo}__{key.number}.json"

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def _read(self, key: StateKey) -> StateRecord | None:
        try:
            gist = self._get_gist()
        except Exception as e:
            raise StateReadError(f"cannot fetch gist {self._gist_id}: {e}") from e
        file_obj = gist.files.get(self.filename_for(key))
        if file_obj is None or not (file_obj.content or "").strip():
            return None
        try:
            data = json.loads(file_obj.content)
        except json.JSONDecodeError as e:
            raise StateReadError(f"{self.filename_for(key)} is not valid JSON: {e}") from e
        return StateRecord.from_dict(data)

    def save(self, key: StateKey, record: StateRecord) -> None:
        """Replace the pull request's file in the Gist.

        The review has already been posted when this runs, so a failure is
        logged rather than raised; the next run then repeats the same review.
        """
        from github import InputFileContent

        try:
            gist = self._get_gist()
            content = InputFileContent(json.dumps(record.to_dict(), indent=2))
            gist.edit(files={self.filename_for(key): content})
        except Exception as e:
            logger.warning("GistStore.save() failed (%s): %s", type(e).__name__, e)
            print(f"Warning: could not persist review state to Gist ({type(e).__name__}: {e})")
