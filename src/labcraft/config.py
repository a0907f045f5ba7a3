"""labcraft configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (LABCRAFT_DATA_DIR, LABCRAFT_OWNER)
  3. Per-project labcraft.yaml  (current directory)
  4. Global ~/.labcraft/config.yaml
  5. Hardcoded defaults

Config files must never hold credentials. Sign-in is checked elsewhere.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from labcraft.db.kv import DEFAULT_PREFIX
from labcraft.export.paginator import FITS

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".labcraft"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "labcraft.yaml"

# Key names that look like a credential. Matches password, passwd, api_key,
# api-secret, standalone token/secret and *_token / *_secret suffixes.
_CREDENTIAL_RE: re.Pattern[str] = re.compile(
    r"passw(?:ord|d)"
    r"|api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["storage", "draft", "assets", "export", "session"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class StorageCfg:
    """Where records live (labcraft.yaml: storage:)."""

    data_dir: str = ".labcraft"
    db_name: str = "labcraft.db"
    prefix: str = DEFAULT_PREFIX

    @property
    def db_path(self) -> Path:
        return Path(self.data_dir) / self.db_name


@dataclass
class DraftCfg:
    debounce_seconds: float = 1.0


@dataclass
class AssetsCfg:
    """Upload compression settings (labcraft.yaml: assets:)."""

    max_width: int = 1200
    quality: float = 0.8


@dataclass
class ExportCfg:
    """PDF export settings (labcraft.yaml: export:).

    Attributes:
        page_width: Page width in millimetres.
        page_height: Page height in millimetres.
        margin_top: Top margin in millimetres.
        scale: Rasterization oversampling factor.
        fit: ``page`` (shrink onto one page) or ``width`` (flow across pages).
        output_dir: Directory exported files are written into.
    """

    page_width: float = 210.0
    page_height: float = 297.0
    margin_top: float = 10.0
    scale: float = 2.0
    fit: str = "page"
    output_dir: str = "."


@dataclass
class SessionCfg:
    owner: str = "current_user"


@dataclass
class LabcraftConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    storage: StorageCfg = field(default_factory=StorageCfg)
    draft: DraftCfg = field(default_factory=DraftCfg)
    assets: AssetsCfg = field(default_factory=AssetsCfg)
    export: ExportCfg = field(default_factory=ExportCfg)
    session: SessionCfg = field(default_factory=SessionCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_credentials(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any credential-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else str(k)
                if _CREDENTIAL_RE.search(str(k)):
                    raise ConfigError(
                        f"Config '{source}' contains a forbidden key '{full}'.\n"
                        "  Credentials do not belong in config files.\n"
                        f"  Remove '{full}' from {source.name}."
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: LabcraftConfig) -> None:
    if cfg.export.fit not in FITS:
        raise ConfigError(
            f"export.fit must be one of {', '.join(FITS)}, got '{cfg.export.fit}'"
        )
    if not 0.0 < cfg.assets.quality <= 1.0:
        raise ConfigError(f"assets.quality must be in (0, 1], got {cfg.assets.quality}")
    if cfg.assets.max_width < 1:
        raise ConfigError(f"assets.max_width must be >= 1, got {cfg.assets.max_width}")
    if cfg.draft.debounce_seconds < 0:
        raise ConfigError("draft.debounce_seconds must not be negative")
    if cfg.export.page_height - 2 * cfg.export.margin_top <= 0:
        raise ConfigError("export.margin_top leaves no room on the page")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> LabcraftConfig:
    """Build a *LabcraftConfig* from a merged raw YAML dict."""
    cfg = LabcraftConfig()

    if "storage" in data:
        s = data["storage"] or {}
        cfg.storage = StorageCfg(
            data_dir=str(s.get("data_dir", cfg.storage.data_dir)),
            db_name=str(s.get("db_name", cfg.storage.db_name)),
            prefix=str(s.get("prefix", cfg.storage.prefix)),
        )

    if "draft" in data:
        d = data["draft"] or {}
        cfg.draft = DraftCfg(
            debounce_seconds=float(d.get("debounce_seconds", cfg.draft.debounce_seconds)),
        )

    if "assets" in data:
        a = data["assets"] or {}
        cfg.assets = AssetsCfg(
            max_width=int(a.get("max_width", cfg.assets.max_width)),
            quality=float(a.get("quality", cfg.assets.quality)),
        )

    if "export" in data:
        e = data["export"] or {}
        cfg.export = ExportCfg(
            page_width=float(e.get("page_width", cfg.export.page_width)),
            page_height=float(e.get("page_height", cfg.export.page_height)),
            margin_top=float(e.get("margin_top", cfg.export.margin_top)),
            scale=float(e.get("scale", cfg.export.scale)),
            fit=str(e.get("fit", cfg.export.fit)),
            output_dir=str(e.get("output_dir", cfg.export.output_dir)),
        )

    if "session" in data:
        se = data["session"] or {}
        cfg.session = SessionCfg(owner=str(se.get("owner", cfg.session.owner)))

    return cfg


def _apply_env_overrides(cfg: LabcraftConfig) -> LabcraftConfig:
    """Apply LABCRAFT_* environment variable overrides."""
    if data_dir := os.environ.get("LABCRAFT_DATA_DIR"):
        cfg.storage.data_dir = data_dir
    if owner := os.environ.get("LABCRAFT_OWNER"):
        cfg.session.owner = owner
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> LabcraftConfig:
    """Load and return a merged *LabcraftConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *labcraft.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file contains credential-like keys or an
            out-of-range value.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    for path in (global_path, search_dir / _PROJECT_CONFIG_NAME):
        if not path.exists():
            continue
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config '{path}' must be a mapping at the top level")
        _check_no_credentials(raw, path)
        _warn_unknown_keys(raw, path)
        merged = _deep_merge(merged, raw)

    try:
        cfg = _cfg_from_dict(merged)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    cfg = _apply_env_overrides(cfg)
    _validate(cfg)
    return cfg
