"""JSON-file key/value storage backing the dashboard PreferencesStore."""

import json
import os
from pathlib import Path

from roadmap_dashboard.observability import get_logger

logger = get_logger(__name__)


class JsonFilePreferencesStorage:
    """Stores string values under keys in a single JSON object on disk.

    A missing or unreadable file behaves as empty storage. Writes go to a
    sibling temp file first and are then moved into place.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Preferences file unreadable, treating as empty", path=str(self._path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def load(self, key: str) -> str | None:
        return self._read_all().get(key)

    def save(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
        logger.debug("Preferences saved", path=str(self._path), key=key)
