"""Configuration loading for modelpub (.modelpub.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

CONFIG_FILENAME = ".modelpub.yml"

_FALSE_VALUES = {"0", "false", "no"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ResolverConfig:
    """External model download settings."""

    timeout: Optional[float] = None
    cache_path: Optional[Path] = None


@dataclass
class SiteConfig:
    """Documentation site rendering settings."""

    server_root: str = ""
    title: str = "Model Repository"
    templates_dir: Optional[Path] = None
    diagram_server: Optional[str] = None


@dataclass
class PublishConfig:
    """Represents the settings defined in .modelpub.yml."""

    root: Path
    source_dir: Path = Path("src")
    build_dir: Path = Path("build")
    base_model: Optional[Path] = None
    extensions: List[str] = field(default_factory=lambda: [".cto"])
    exclude_paths: List[str] = field(default_factory=list)
    formats: Optional[List[str]] = None
    force_publish: bool = False
    clean: bool = True
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    site: SiteConfig = field(default_factory=SiteConfig)

    def __post_init__(self) -> None:
        self.source_dir = self._anchor(self.source_dir)
        self.build_dir = self._anchor(self.build_dir)
        if self.base_model is not None:
            self.base_model = self._anchor(self.base_model)

    def _anchor(self, path: Path) -> Path:
        path = Path(path).expanduser()
        return path if path.is_absolute() else self.root / path


def load_config(config_path: Path) -> PublishConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return PublishConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    resolver_data = _as_dict(data.get("resolver"))
    cache_path = _as_str(resolver_data.get("cache_path"))
    resolver = ResolverConfig(
        timeout=_as_float(resolver_data.get("timeout")),
        cache_path=root / cache_path if cache_path else None,
    )
    if resolver.timeout is not None and resolver.timeout <= 0:
        raise ConfigError("resolver.timeout must be a positive number")

    site_data = _as_dict(data.get("site"))
    templates_dir = _as_str(site_data.get("templates_dir"))
    site = SiteConfig(
        server_root=_as_str(site_data.get("server_root")) or "",
        title=_as_str(site_data.get("title")) or SiteConfig.title,
        templates_dir=root / templates_dir if templates_dir else None,
        diagram_server=_as_str(site_data.get("diagram_server")),
    )

    extensions = _as_str_list(data.get("extensions")) or [".cto"]
    formats = _as_str_list(data.get("formats")) if "formats" in data else None
    base_model = _as_str(data.get("base_model"))

    return PublishConfig(
        root=root,
        source_dir=Path(_as_str(data.get("source_dir")) or "src"),
        build_dir=Path(_as_str(data.get("build_dir")) or "build"),
        base_model=Path(base_model) if base_model else None,
        extensions=[ext if ext.startswith(".") else f".{ext}" for ext in extensions],
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        formats=formats or None,
        force_publish=_as_bool(data.get("force_publish")) or False,
        clean=_flag(data.get("clean"), default=True),
        resolver=resolver,
        site=site,
    )


def apply_env_overrides(config: PublishConfig, environ: Optional[Mapping[str, str]] = None) -> PublishConfig:
    """Apply FORCE_PUBLISH and SERVER_ROOT style environment switches in place."""
    env = os.environ if environ is None else environ

    force = _first_env(env, ("MODELPUB_FORCE_PUBLISH", "FORCE_PUBLISH"))
    if force is not None and force.strip():
        config.force_publish = force.strip().lower() not in _FALSE_VALUES

    server_root = _first_env(env, ("MODELPUB_SERVER_ROOT", "SERVER_ROOT"))
    if server_root is not None:
        config.site.server_root = server_root

    return config


def _first_env(env: Mapping[str, str], names: Sequence[str]) -> Optional[str]:
    for name in names:
        if name in env:
            return env[name]
    return None


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _flag(value: Any, *, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "PublishConfig",
    "ResolverConfig",
    "SiteConfig",
    "apply_env_overrides",
    "load_config",
]
