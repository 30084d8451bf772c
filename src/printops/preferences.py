"""Local user preference store.

The dashboard keeps a few per-operator preferences outside the backing
store (report printer selection, default printers tab, copied tickets,
default user/operator).  ``JsonPreferenceStore`` keeps them in a single
JSON object on disk.

Usage:
    from printops.preferences import JsonPreferenceStore

    prefs = JsonPreferenceStore("preferences.json")
    prefs.set("defaultPrintersTab", "color")
    prefs.get("copiedTickets", [])
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonPreferenceStore:
    """File-backed implementation of the ``PreferenceStore`` protocol.

    The file is re-read on every ``get`` so that edits made by other
    processes are visible.  A missing or unreadable file behaves as an
    empty store.

    Args:
        path: Location of the JSON file.  Created on first ``set``.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value for ``key`` or ``default`` when absent."""
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump(data, f, indent=2)
