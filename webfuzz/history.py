"""Recording job configurations so that a payload hash can be traced back."""

from __future__ import annotations

import hashlib
import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from webfuzz.config import Config
from webfuzz.options import ConfigOptions
from webfuzz.util import create_config_dir, history_dir

_OPTIONS_FILE = "options"
_HEX_RE = re.compile(r"^[+-]?[0-9a-fA-F]+$")
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass
class ConfigOptionsHistory:
    """The options of a past job, with the time it started."""

    options: ConfigOptions = field(default_factory=ConfigOptions)
    time: datetime = _ZERO_TIME

    def _to_json_dict(self) -> dict[str, Any]:
        return {**self.options.to_json_dict(), "time": self.time.isoformat()}

    @classmethod
    def _from_json_dict(cls, data: Any) -> ConfigOptionsHistory:
        if not isinstance(data, dict):
            raise ValueError("history entry must be a JSON object")
        options = ConfigOptions.from_json_dict(data)
        raw_time = data.get("time")
        if raw_time is None:
            return cls(options, _ZERO_TIME)
        if not isinstance(raw_time, str):
            raise ValueError("history time must be a string")
        return cls(options, datetime.fromisoformat(_FRACTION_RE.sub(r"\1", raw_time)))


def calculate_history_hash(options: bytes) -> str:
    """Return the hex SHA-256 digest of the serialised options."""
    return hashlib.sha256(options).hexdigest()


def write_history_entry(conf: Config) -> str:
    """Store the configuration in the history directory and return its hash."""
    entry = ConfigOptionsHistory(conf.to_options(), datetime.now().astimezone())
    payload = json.dumps(
        entry._to_json_dict(), separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")
    digest = calculate_history_hash(payload)
    directory = history_dir() / digest
    create_config_dir(directory)
    target = directory / _OPTIONS_FILE
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o640)
    with os.fdopen(fd, "wb") as handle:
        handle.write(payload)
    return digest


def search_hash(hash_value: str) -> tuple[list[ConfigOptionsHistory], int]:
    """Find history entries matching a payload hash and return them with the input position."""
    if len(hash_value) < 6:
        raise ValueError("bad FFUFHASH value")
    prefix = hash_value[:5].lower()
    position_text = hash_value[5:]
    if not _HEX_RE.match(position_text):
        raise ValueError("bad positional value in FFUFHASH")
    position = int(position_text, 16)
    if not _INT32_MIN <= position <= _INT32_MAX:
        raise ValueError("bad positional value in FFUFHASH")

    root = history_dir()
    with os.scandir(root) as entries:
        matched = sorted(
            entry.name
            for entry in entries
            if entry.is_dir() and entry.name.lower().startswith(prefix)
        )
    found: list[ConfigOptionsHistory] = []
    for name in matched:
        try:
            found.append(config_from_history(root / name))
        except (OSError, ValueError):
            continue
    return found, position


def history_replayable(conf: Config) -> tuple[bool, str]:
    """Return whether a job can be replayed, and the reason when it cannot."""
    for wordlist in conf.wordlists:
        if wordlist == "-" or wordlist.startswith("-:"):
            return False, "stdin input was used for one of the wordlists"
    return True, ""


def config_from_history(dirname: str | os.PathLike[str]) -> ConfigOptionsHistory:
    """Load the history entry stored in dirname; raise OSError or ValueError."""
    data = (Path(dirname) / _OPTIONS_FILE).read_bytes()
    return ConfigOptionsHistory._from_json_dict(json.loads(data))