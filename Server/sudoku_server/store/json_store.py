"""
JSON File Store

Process-wide document store backed by a single JSON file. The whole document
is loaded on every logical transaction, mutated in memory and flushed back.

Writes are queued on a single worker so two handlers can never interleave
partial writes of the backing file.
"""

import json
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ..config.game_settings import STORE_COLLECTIONS
from ..utils.game_logger import game_logger


class JsonStore:
    """
    Load/save access to the shared document.

    The document maps each collection name (``users``, ``rooms``...) to an
    ordered list of records keyed by their ``id`` field.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.data: Optional[Dict[str, Any]] = None
        self._lock = threading.RLock()
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix='store-writer')
        self._pending: Optional[Future] = None
        self._write_failed = False

    def read(self) -> Dict[str, Any]:
        """
        Load the backing file into memory.

        A missing or empty file yields an empty document. Every known
        collection exists afterwards. If the last write failed the in-memory
        document is kept, since it is ahead of the file.
        """
        with self._lock:
            self.flush()

            if self._write_failed and self.data is not None:
                game_logger.logger.warning(f"Store {self.path}: last write failed, keeping in-memory state")
            else:
                try:
                    content = self.path.read_text(encoding='utf-8')
                except FileNotFoundError:
                    content = ''
                self.data = json.loads(content) if content.strip() else {}
                if not isinstance(self.data, dict):
                    self.data = {}

            for collection in STORE_COLLECTIONS:
                if not isinstance(self.data.get(collection), list):
                    self.data[collection] = []
            return self.data

    def write(self) -> Future:
        """
        Queue a flush of the current document.

        The document is serialized immediately so later mutations cannot leak
        into this write; the file itself is written after every earlier queued
        write has completed. Failures are logged, never raised.

        Returns:
            Future resolving once this write has been attempted
        """
        with self._lock:
            payload = json.dumps(self.data, indent=2) if self.data is not None else None
            self._pending = self._writer.submit(self._flush_payload, payload)
            return self._pending

    def _flush_payload(self, payload: Optional[str]) -> None:
        if payload is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + '.tmp')
            tmp_path.write_text(payload, encoding='utf-8')
            os.replace(tmp_path, self.path)
            self._write_failed = False
        except OSError as e:
            self._write_failed = True
            game_logger.logger.error(f"Error during database write to {self.path}: {e}")

    def flush(self) -> None:
        """Block until every queued write has been attempted."""
        pending = self._pending
        if pending is not None:
            pending.result()

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """
        read -> mutate -> write as one step.

        The write only happens when the block exits normally, so a guard
        failure raised inside the block commits nothing.
        """
        with self._lock:
            data = self.read()
            yield data
            self.write()

    @contextmanager
    def snapshot(self) -> Iterator[Dict[str, Any]]:
        """Read-only access to a freshly loaded document."""
        with self._lock:
            yield self.read()

    @property
    def write_failed(self) -> bool:
        return self._write_failed

    def close(self) -> None:
        """Flush queued writes and stop the writer thread."""
        self.flush()
        self._writer.shutdown(wait=True)
