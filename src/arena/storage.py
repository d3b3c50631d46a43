"""
YAML persistence for tournament documents.

One file per tournament. Writes go to a temporary file that replaces the
previous document, all under a file lock, so readers only ever see a whole
snapshot.
"""
import logging
import os
import re
from typing import List

import yaml
from filelock import FileLock

from .models import Tournament

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


class TournamentNotFound(KeyError):
    """Raised when no document exists for a tournament id."""


class TournamentStore:
    def __init__(self, data_dir: str, lock_timeout: float = 10):
        self.data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        self.lock = FileLock(os.path.join(data_dir, '.lock'), timeout=lock_timeout)

    def __repr__(self):
        return f"TournamentStore(data_dir={self.data_dir})"

    def _path(self, tournament_id: str) -> str:
        if not _ID_PATTERN.match(str(tournament_id)):
            raise TournamentNotFound(tournament_id)
        return os.path.join(self.data_dir, f"{tournament_id}.yaml")

    def save(self, tournament: Tournament):
        path = self._path(tournament.id)
        tmp_path = path + '.tmp'
        with self.lock:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(tournament.to_dict(), f, default_flow_style=False, sort_keys=False,
                               allow_unicode=True)
            os.replace(tmp_path, path)
        logger.debug("Saved tournament %s to %s", tournament.id, path)

    def load(self, tournament_id: str) -> Tournament:
        path = self._path(tournament_id)
        with self.lock:
            if not os.path.exists(path):
                raise TournamentNotFound(tournament_id)
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        return Tournament.from_dict(data)

    def list_ids(self) -> List[str]:
        return sorted(name[:-len('.yaml')] for name in os.listdir(self.data_dir)
                      if name.endswith('.yaml') and _ID_PATTERN.match(name[:-len('.yaml')]))

    def delete(self, tournament_id: str):
        path = self._path(tournament_id)
        with self.lock:
            if not os.path.exists(path):
                raise TournamentNotFound(tournament_id)
            os.remove(path)
        logger.info("Deleted tournament %s", tournament_id)
