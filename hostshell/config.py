"""TOML-based host configuration.

Loads ~/.hostshell/hosts.toml (global) and hostshell.toml (project),
merges them, and resolves named hosts into Endpoint / SSHClient instances.

Example hostshell.toml::

    [hosts.build]
    host = "10.0.0.5"
    user = "deploy"
    auth = "key"
    key_file = "~/.ssh/id_ed25519"

    [hosts.legacy]
    host = "10.0.0.9"
    port = 2222
    user = "root"
    auth = "password"
    password = "hunter2"
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias

from hostshell.endpoint import DEFAULT_PORT, DEFAULT_TIMEOUT, Auth, Endpoint, KeyFileAuth, PasswordAuth
from hostshell.errors import UnsupportedModeError

if TYPE_CHECKING:
    from hostshell.protocols import HostKeyVerifier
    from hostshell.ssh import SSHClient

RawConfig: TypeAlias = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".hostshell" / "hosts.toml"
PROJECT_CONFIG_NAME = "hostshell.toml"


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("hosts", {})
    return merged


def _build_auth(name: str, raw: RawConfig) -> Auth:
    match raw.get("auth", "password"):
        case "password":
            if "password" not in raw:
                raise ValueError(f"Host '{name}' uses password auth but has no 'password'")
            return PasswordAuth(str(raw["password"]))
        case "key":
            if "key_file" not in raw:
                raise ValueError(f"Host '{name}' uses key auth but has no 'key_file'")
            passphrase = raw.get("passphrase")
            return KeyFileAuth(
                os.path.expanduser(str(raw["key_file"])),
                str(passphrase) if passphrase is not None else None,
            )
        case mode:
            raise UnsupportedModeError(mode)


def build_endpoint(name: str, raw: RawConfig) -> Endpoint:
    if "host" not in raw:
        raise ValueError(f"Host '{name}' has no 'host'")
    return Endpoint(
        host=str(raw["host"]),
        user=str(raw.get("user", "root")),
        auth=_build_auth(name, raw),
        port=int(raw.get("port", DEFAULT_PORT)),
        timeout=float(raw.get("timeout", DEFAULT_TIMEOUT)),
    )


def resolve_endpoint(
    name: str,
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> Endpoint:
    config = load_config(project_dir=project_dir, global_path=global_path)
    hosts = config["hosts"]
    if name not in hosts:
        available = ", ".join(sorted(hosts)) or "(none)"
        raise KeyError(f"Host '{name}' not found. Available: {available}")
    return build_endpoint(name, hosts[name])


def client(
    name: str,
    *,
    verifier: HostKeyVerifier | None = None,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> SSHClient:
    from hostshell.ssh import SSHClient

    endpoint = resolve_endpoint(name, project_dir=project_dir, global_path=global_path)
    if verifier is None:
        return SSHClient(endpoint)
    return SSHClient(endpoint, verifier)
