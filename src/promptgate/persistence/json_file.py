"""JSON file persistence adapter.

Keeps every key in a single JSON document. Writes go to a temporary file in
the same directory which then replaces the original, so a crash mid-write
leaves the previous document intact.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from promptgate.persistence.base import PersistenceError

logger = logging.getLogger(__name__)


class JsonFilePersistence:
    """File-backed adapter storing ``{key: value}`` in one JSON document.

    The file is created with chmod 600 since it holds an email address.

    Args:
        path: Path to the JSON document
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser().resolve()

    async def get(self, key: str) -> str | None:
        document = await asyncio.to_thread(self._read, "get", key)
        value = document.get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._update, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._update, key, None)

    def _read(self, operation: str, key: str) -> dict[str, object]:
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise PersistenceError(operation, key, str(e)) from e
        except (UnicodeDecodeError, json.JSONDecodeError):
            # The document is rewritten on the next set()
            logger.warning("Ignoring unreadable state file: %s", self.path)
            return {}
        return document if isinstance(document, dict) else {}

    def _update(self, key: str, value: str | None) -> None:
        operation = "set" if value is not None else "remove"
        document = self._read(operation, key)
        if value is None:
            if key not in document:
                return
            del document[key]
        else:
            document[key] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f)
                os.chmod(tmp_name, 0o600)  # noqa: PTH101
                os.replace(tmp_name, self.path)  # noqa: PTH105
            except Exception:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(operation, key, str(e)) from e
        logger.debug("Wrote state file: %s (%s %s)", self.path, operation, key)
