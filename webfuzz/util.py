"""Small helpers shared across the package, and the configuration locations."""

from __future__ import annotations

import os
import random
import stat
import string
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

VERSION = "2.0.0"
VERSION_APPENDIX = "-dev"

_APP_DIR = "webfuzz"
_CHARS = string.ascii_lowercase + string.ascii_uppercase


def random_string(n: int) -> str:
    """Return a random string of n ASCII letters."""
    if n < 0:
        raise ValueError("length must not be negative")
    return "".join(random.choices(_CHARS, k=n))


def uniq_strings(items: Iterable[str]) -> list[str]:
    """Return the distinct strings of items, dropping duplicates."""
    return list(dict.fromkeys(items))


def file_exists(path: str | os.PathLike[str]) -> bool:
    """Return True if path exists and is not a directory."""
    try:
        info = os.stat(path)
    except (OSError, ValueError):
        return False
    return not stat.S_ISDIR(info.st_mode)


def request_contains_keyword(req: Any, kw: str) -> bool:
    """Return True if kw appears in any field of the request."""
    if kw in req.host or kw in req.url or kw in req.method:
        return True
    if kw.encode("utf-8") in req.data:
        return True
    return any(kw in key or kw in value for key, value in req.headers.items())


def host_url_from_request(req: Any) -> str:
    """Return the request host followed by its URL path without the last segment."""
    path = unquote(urlsplit(req.url).path)
    trimmed = "/".join(path.split("/")[:-1]).strip()
    return req.host + trimmed


def version() -> str:
    """Return the version string."""
    return f"{VERSION}{VERSION_APPENDIX}"


def config_dir() -> Path:
    """Return the directory holding the user's configuration."""
    base = os.environ.get("XDG_CONFIG_HOME", "")
    if base and os.path.isabs(base):
        root = Path(base)
    elif sys.platform == "darwin":
        root = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        root = Path(local) if local else Path.home() / "AppData" / "Local"
    else:
        root = Path.home() / ".config"
    return root / _APP_DIR


def history_dir() -> Path:
    """Return the directory holding the job history."""
    return config_dir() / "history"


def scraper_dir() -> Path:
    """Return the directory holding scraper definitions."""
    return config_dir() / "scraper"


def create_config_dir(path: str | os.PathLike[str]) -> None:
    """Create path, with parents, if it does not exist yet."""
    try:
        os.stat(path)
    except OSError:
        os.makedirs(path, mode=0o750, exist_ok=True)


def check_or_create_config_dir() -> None:
    """Make sure the configuration, history and scraper directories exist."""
    create_config_dir(config_dir())
    create_config_dir(history_dir())
    create_config_dir(scraper_dir())