# yeelight_music/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from yeelight_music.core.errors import ConfigError
from yeelight_music.device.music_server import SERVER_PORT
from yeelight_music.protocol import Effect
from yeelight_music.transport.direct import DEFAULT_DEVICE_PORT


@dataclass(frozen=True)
class RelayConfig:
    host: Optional[str] = None          # advertised to lights; None = resolve local address
    bind_host: str = ""
    base_port: int = SERVER_PORT
    effect: Effect = Effect.SUDDEN
    duration: int = 100
    accept_timeout_s: Optional[float] = None
    write_timeout_s: Optional[float] = 5.0
    prune_dead_sessions: bool = True


@dataclass(frozen=True)
class DeviceConfig:
    host: str
    name: Optional[str] = None
    port: int = DEFAULT_DEVICE_PORT
    effect: Effect = Effect.SUDDEN
    duration: int = 100
    timeout_s: float = 5.0


@dataclass(frozen=True)
class MusicConfig:
    relay: RelayConfig = field(default_factory=RelayConfig)
    devices: List[DeviceConfig] = field(default_factory=list)


_RELAY_KEYS = set(RelayConfig.__dataclass_fields__)
_DEVICE_KEYS = set(DeviceConfig.__dataclass_fields__)


def _effect(value: Any, where: str) -> Effect:
    try:
        return Effect.coerce(value)
    except ValueError as e:
        raise ConfigError(f"Invalid effect in {where}.", hint=str(e)) from None


def _check_keys(section: Dict[str, Any], allowed: set, where: str) -> None:
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ConfigError(
            f"Unknown keys in {where}: {', '.join(unknown)}.",
            hint=f"Allowed: {', '.join(sorted(allowed))}",
        )


def parse_config(doc: Dict[str, Any]) -> MusicConfig:
    if not isinstance(doc, dict):
        raise ConfigError("Configuration must be a mapping.")

    relay_doc = doc.get("relay")
    if relay_doc is None:
        relay_doc = {}
    if not isinstance(relay_doc, dict):
        raise ConfigError("'relay' must be a mapping.")
    _check_keys(relay_doc, _RELAY_KEYS, "relay")

    devices_doc = doc.get("devices")
    if devices_doc is None:
        devices_doc = []
    if not isinstance(devices_doc, list):
        raise ConfigError("'devices' must be a list.")

    try:
        relay = RelayConfig(**{**relay_doc, "effect": _effect(relay_doc.get("effect"), "relay")})

        devices: List[DeviceConfig] = []
        for i, entry in enumerate(devices_doc):
            where = f"devices[{i}]"
            if not isinstance(entry, dict) or not entry.get("host"):
                raise ConfigError(f"{where} needs at least a 'host'.")
            _check_keys(entry, _DEVICE_KEYS, where)
            devices.append(DeviceConfig(**{**entry, "effect": _effect(entry.get("effect"), where)}))
    except TypeError as e:
        raise ConfigError("Malformed configuration.", hint=str(e)) from None

    return MusicConfig(relay=relay, devices=devices)


def load_config(path: Path | str) -> MusicConfig:
    """Load a YAML file with optional 'relay' and 'devices' sections."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}.", hint=str(e)) from None

    return parse_config(doc)
