import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

Records = Dict[str, dict]


class StorageError(Exception):
    """Base class for persistence gateway failures."""


class CorruptStoreError(StorageError):
    """A store exists but cannot be decoded into a mapping of records."""


class JsonStore:
    """Saves and loads named record collections as JSON files under a root directory.

    Each collection lives in ``<root>/<name>.json`` as an object mapping record id to
    the record's dict form. Key order in the file follows the mapping's order, so
    insertion order survives a round trip.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}.json"

    def save(self, name: str, records: Records) -> None:
        """Write ``records`` to the named store, replacing any previous contents.

        I/O errors propagate to the caller.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved {len(records)} record(s) to {path}")

    def load(self, name: str) -> Optional[Records]:
        """Return the named collection, or None when the store does not exist."""
        path = self.path_for(name)
        if not path.exists():
            logger.debug(f"No store at {path}")
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptStoreError(f"{path} is not valid UTF-8 JSON: {e}") from e

        if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
            raise CorruptStoreError(f"{path} does not hold a mapping of records")

        logger.debug(f"Loaded {len(data)} record(s) from {path}")
        return data
