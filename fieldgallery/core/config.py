# fieldgallery/core/config.py
# Loads FieldGallery settings from a TOML file (defaults + overrides).
# - Reads FIELDGALLERY_CONFIG or walks up from CWD looking for fieldgallery.toml
# - Env overrides: FIELDGALLERY_API_URL, FIELDGALLERY_LOG_LEVEL
# - Exposes a Settings object (SETTINGS) built once at import

from __future__ import annotations
from pathlib import Path
import os
from typing import Any, Dict, List, Optional, Set
import tomli as tomllib


class ConfigError(ValueError):
    """Raised when a config value is present but unusable."""


# -------------------- Defaults (used if TOML omits keys) --------------------
_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "api": {
        "base_url": "http://localhost:8000",
        "timeout": 30.0,
    },
    "gallery": {
        "default_view": "grid",   # grid | list
        "thumb_height": 220,
    },
    "logging": {
        "level": "INFO",
        "logs_dir": "",           # empty => console only
        "json": False,
    },
    "dev": {
        # dev server storage: SQLite db + uploaded blobs
        "data_dir": "./.fieldgallery",
        "max_upload_mb": 25,
    },
    "ext": {
        "image": ["jpg","jpeg","png","gif","webp","heic","heif","bmp","tif","tiff"],
        "video": ["mp4","mov","m4v","avi","webm","mkv"],
    },
}

_VIEW_MODES = ("grid", "list")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# -------------------- Read + merge TOML --------------------

def _find_config_path() -> Optional[Path]:
    """Find fieldgallery.toml without user input.
    Priority:
      1) FIELDGALLERY_CONFIG
      2) ./fieldgallery.toml (CWD)
      3) ascend parents from CWD looking for fieldgallery.toml
      4) fieldgallery/fieldgallery.toml (package default)
    """
    cfg_env = os.getenv("FIELDGALLERY_CONFIG")
    if cfg_env:
        p = Path(cfg_env).expanduser()
        if p.exists():
            return p

    cur = Path.cwd()
    while True:
        candidate = cur / "fieldgallery.toml"
        if candidate.exists():
            return candidate
        if cur.parent == cur:
            break  # reached filesystem root
        cur = cur.parent

    pkg_default = Path(__file__).resolve().parents[1] / "fieldgallery.toml"
    if pkg_default.exists():
        return pkg_default

    return None


def _load_config_toml(path: Optional[Path] = None) -> dict:
    """Load TOML from the given path (or best match) or return {} if not found."""
    path = path or _find_config_path()
    if path and path.exists():
        with path.open("rb") as f:
            return tomllib.load(f)
    return {}


def _merged(cfg: dict, section: str) -> dict:
    return {**_DEFAULTS[section], **(cfg.get(section) or {})}


def _norm_ext_list(exts: List[str]) -> Set[str]:
    """
    Normalize extension strings: ensure leading dot and lowercase.
    Accepts 'jpg' or '.jpg' and returns '.jpg'.
    """
    out: Set[str] = set()
    for e in exts:
        e = (e or "").strip().lower()
        if not e:
            continue
        if not e.startswith("."):
            e = "." + e
        out.add(e)
    return out


class Settings:
    """
    Resolved settings. Relative dev paths are resolved against the config
    file's directory when one was found, otherwise against CWD.
    """
    def __init__(self, cfg: dict, base_dir: Optional[Path] = None) -> None:
        base_dir = base_dir or Path.cwd()

        api = _merged(cfg, "api")
        self.api_url: str = str(os.getenv("FIELDGALLERY_API_URL") or api["base_url"]).rstrip("/")
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigError(f"[api].base_url must be an http(s) URL, got {self.api_url!r}")
        try:
            self.timeout: float = float(api["timeout"])
        except (TypeError, ValueError):
            raise ConfigError(f"[api].timeout must be a number, got {api['timeout']!r}")
        if self.timeout <= 0:
            raise ConfigError("[api].timeout must be > 0")

        gallery = _merged(cfg, "gallery")
        self.default_view: str = str(gallery["default_view"]).lower()
        if self.default_view not in _VIEW_MODES:
            raise ConfigError(f"[gallery].default_view must be one of {_VIEW_MODES}")
        try:
            self.thumb_height: int = int(gallery["thumb_height"])
        except (TypeError, ValueError):
            raise ConfigError(f"[gallery].thumb_height must be an integer, got {gallery['thumb_height']!r}")
        if not (16 <= self.thumb_height <= 4096):
            raise ConfigError("[gallery].thumb_height must be 16..4096")

        log = _merged(cfg, "logging")
        self.log_level: str = str(os.getenv("FIELDGALLERY_LOG_LEVEL") or log["level"]).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"[logging].level must be one of {_LOG_LEVELS}")
        _logs = str(log.get("logs_dir") or "").strip()
        self.logs_dir: Optional[Path] = None
        if _logs:
            p = Path(_logs).expanduser()
            self.logs_dir = p if p.is_absolute() else (base_dir / p)
        self.json_logs: bool = bool(log.get("json", False))

        dev = _merged(cfg, "dev")
        _data = Path(str(dev["data_dir"])).expanduser()
        self.data_dir: Path = (_data if _data.is_absolute() else (base_dir / _data)).resolve()
        self.db_path: Path = self.data_dir / "db" / "files.sqlite3"
        self.upload_dir: Path = self.data_dir / "uploads"
        self.thumb_dir: Path = self.data_dir / "thumb-cache"
        try:
            self.max_upload_bytes: int = int(float(dev["max_upload_mb"]) * 1024 * 1024)
        except (TypeError, ValueError):
            raise ConfigError(f"[dev].max_upload_mb must be a number, got {dev['max_upload_mb']!r}")

        # Extensions the dev server uses to tag uploads as image/video
        ext = _merged(cfg, "ext")
        self.image_ext: Set[str] = _norm_ext_list(list(ext.get("image", [])))
        self.video_ext: Set[str] = _norm_ext_list(list(ext.get("video", [])))

    def __repr__(self) -> str:
        return (
            f"Settings(api_url={self.api_url}, timeout={self.timeout}, "
            f"default_view={self.default_view}, thumb_height={self.thumb_height}, "
            f"log_level={self.log_level}, logs_dir={self.logs_dir}, "
            f"json_logs={self.json_logs}, data_dir={self.data_dir})"
        )


def load_settings(path: Optional[Path] = None, overrides: Optional[dict] = None) -> Settings:
    """
    Build Settings from a TOML file (or the discovered one) plus optional
    per-section overrides, e.g. {"api": {"base_url": "http://x"}}.
    """
    found = Path(path) if path else _find_config_path()
    cfg = _load_config_toml(found)
    for section, values in (overrides or {}).items():
        cfg[section] = {**(cfg.get(section) or {}), **values}
    base_dir = found.resolve().parent if found and found.exists() else None
    return Settings(cfg, base_dir=base_dir)


SETTINGS = load_settings()
