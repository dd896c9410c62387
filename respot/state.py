"""Persistent application state stored as JSON in the configuration directory."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .utils import obfuscate_username

log = logging.getLogger(__name__)


def _decode_bytes(value: Any) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("expected a base64 string")
    return base64.b64decode(value, validate=True)


@dataclass
class Credentials:
    username: str = ""
    data: bytes = b""

    def to_json(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "data": base64.b64encode(self.data).decode("ascii") if self.data else None,
        }

    def _merge(self, obj: Any) -> None:
        if obj is None:
            return
        if not isinstance(obj, dict):
            raise TypeError("credentials must be an object")
        if "username" in obj:
            username = obj["username"]
            if username is not None and not isinstance(username, str):
                raise TypeError("username must be a string")
            self.username = username or ""
        if "data" in obj:
            self.data = _decode_bytes(obj["data"])


@dataclass
class AppState:
    device_id: str = ""
    event_manager: Any = None
    credentials: Credentials = field(default_factory=Credentials)
    path: Path | None = field(default=None, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def to_json(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "event_manager": self.event_manager,
            "credentials": self.credentials.to_json(),
        }

    def _merge(self, obj: Any) -> None:
        if obj is None:
            return
        if not isinstance(obj, dict):
            raise TypeError("state must be an object")
        if "device_id" in obj:
            device_id = obj["device_id"]
            if device_id is not None and not isinstance(device_id, str):
                raise TypeError("device_id must be a string")
            self.device_id = device_id or ""
        if "event_manager" in obj:
            self.event_manager = obj["event_manager"]
        if "credentials" in obj:
            self.credentials._merge(obj["credentials"])

    def read(self, config_dir: str | os.PathLike[str]) -> None:
        """Load state from ``config_dir``, falling back to old credentials.json."""
        config_dir = Path(config_dir)
        self.path = config_dir / "state.json"

        try:
            content = self.path.read_bytes()
        except OSError:
            log.debug("no app state found")
        else:
            try:
                self._merge(json.loads(content))
            except (ValueError, TypeError, binascii.Error) as err:
                raise ValueError(f"failed unmarshalling state file: {err}") from err
            log.debug("app state loaded")

        if self.credentials.username:
            return

        try:
            content = (config_dir / "credentials.json").read_bytes()
        except OSError:
            log.debug("stored credentials not found")
            return

        try:
            self.credentials._merge(json.loads(content))
        except (ValueError, TypeError, binascii.Error) as err:
            raise ValueError(f"failed unmarshalling stored credentials file: {err}") from err
        log.debug(
            "stored credentials found (username=%s)",
            obfuscate_username(self.credentials.username),
        )

    def write(self) -> None:
        """Atomically replace the state file with the current state."""
        if self.path is None:
            raise RuntimeError("app state has no path, read it first")

        with self._lock:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    json.dump(self.to_json(), tmp)
                    tmp.write("\n")
                os.replace(tmp_name, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
                raise