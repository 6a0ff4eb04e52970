"""Configuration loading for prettyconf (.prettyconf.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".prettyconf.yml"


@dataclass
class ModuleConfig:
    """Import path prefix served from a local source directory."""

    path: str
    dir: Path


@dataclass
class OutputConfig:
    """Rendering options for the annotated document."""

    indent: int = 2
    root_comment: bool = True


@dataclass
class PrettyConfConfig:
    """Represents the settings defined in .prettyconf.yml."""

    root: Path
    modules: List[ModuleConfig] = field(default_factory=list)
    goroot: Optional[Path] = None
    vendor: bool = True
    tag_key: str = "json"
    goos: Optional[str] = None
    goarch: Optional[str] = None
    build_tags: List[str] = field(default_factory=list)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(config_path: Path) -> PrettyConfConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env_goroot = os.environ.get("GOROOT")
    goroot = Path(env_goroot) if env_goroot else None

    if not config_file.exists():
        return PrettyConfConfig(root=root, goroot=goroot)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    modules: List[ModuleConfig] = []
    raw_modules = data.get("modules")
    if raw_modules is not None and not isinstance(raw_modules, list):
        raise ConfigError("modules must be a list of {path, dir} mappings")
    for entry in raw_modules or []:
        entry_data = _as_dict(entry)
        path = _as_str(entry_data.get("path"))
        directory = _as_str(entry_data.get("dir"))
        if path is None or directory is None:
            raise ConfigError("each modules entry requires both path and dir")
        modules.append(ModuleConfig(path=path, dir=(root / directory).resolve()))

    goroot_str = _as_str(data.get("goroot"))
    if goroot_str:
        goroot = (root / Path(goroot_str).expanduser()).resolve()

    vendor = _as_bool(data.get("vendor"))
    tag_key = _as_str(data.get("tag_key")) or "json"

    build_tags = _as_tags(data.get("build_tags"))
    if build_tags is None:
        raise ConfigError("build_tags must be a list of tags or a comma-separated string")

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if output_data:
        indent = _as_int(output_data.get("indent"))
        if indent is not None:
            if indent < 1:
                raise ConfigError("output.indent must be a positive integer")
            output.indent = indent
        root_comment = _as_bool(output_data.get("root_comment"))
        if root_comment is not None:
            output.root_comment = root_comment

    return PrettyConfConfig(
        root=root,
        modules=modules,
        goroot=goroot,
        vendor=True if vendor is None else vendor,
        tag_key=tag_key,
        goos=_as_str(data.get("goos")) or None,
        goarch=_as_str(data.get("goarch")) or None,
        build_tags=build_tags,
        output=output,
    )


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
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_tags(value: Any) -> Optional[List[str]]:
    if value is None:
        return []
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, list) and all(isinstance(tag, str) for tag in value):
        return [tag.strip() for tag in value if tag.strip()]
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


__all__ = ["CONFIG_FILENAME", "ModuleConfig", "OutputConfig", "PrettyConfConfig", "load_config"]
