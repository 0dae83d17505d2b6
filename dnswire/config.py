"""
Relay configuration.

A JSON file with a single "server" object; any key left out takes the
ServerConfig default. The file's mtime is remembered so the running relay
can pick up edits.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from ipaddress import IPv4Address
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8053
    upstream: list[str] = field(default_factory=lambda: ["8.8.8.8"])
    upstream_port: int = 53
    upstream_timeout: float = 3
    log_level: str = "INFO"
    log_messages: bool = True
    sinkhole: Optional[str] = None   # rewrite every A answer to this address
    hot_reload: bool = True


DEFAULT_CONFIG = {"server": asdict(ServerConfig())}

EXAMPLE_CONFIG = {
    "server": dict(
        DEFAULT_CONFIG["server"],
        upstream=["8.8.8.8", "1.1.1.1"],
        upstream_timeout=2,
    )
}


@dataclass
class Config:
    server: ServerConfig = field(default_factory=ServerConfig)
    _path: Optional[Path] = field(default=None, repr=False)
    _mtime: float = field(default=0.0, repr=False)

    def is_stale(self) -> bool:
        """True once the backing file's mtime moves (hot_reload only)."""
        if self._path is None or not self.server.hot_reload:
            return False
        try:
            return self._path.stat().st_mtime != self._mtime
        except OSError:
            return False


def load_config(path: Optional[str] = None) -> Config:
    """Read `path`, or return the built-in defaults when no path is given."""
    if path is None:
        return _parse_config(DEFAULT_CONFIG, None)

    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = json.loads(p.read_text())
    config = _parse_config(data, p)
    config._mtime = p.stat().st_mtime
    logger.info(f"Loaded config from {p} (upstream: {', '.join(config.server.upstream)})")
    return config


def _parse_config(data: dict, path: Optional[Path]) -> Config:
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")
    server_data = data.get("server", {})
    if not isinstance(server_data, dict):
        raise ValueError(f"'server' must be a JSON object, got {type(server_data).__name__}")
    server_data = dict(server_data)

    known = {f.name for f in fields(ServerConfig)}
    for key in sorted(set(server_data) - known):
        logger.warning(f"Ignoring unknown config key: server.{key}")
        del server_data[key]

    server = ServerConfig(**server_data)

    if isinstance(server.upstream, str):
        server.upstream = [server.upstream]
    elif not isinstance(server.upstream, list) or not all(isinstance(u, str) for u in server.upstream):
        raise ValueError(f"upstream must be an address or a list of addresses: {server.upstream!r}")
    else:
        server.upstream = list(server.upstream)
    if not server.upstream:
        raise ValueError("At least one upstream server is required")
    for port in (server.port, server.upstream_port):
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 0xFFFF:
            raise ValueError(f"Invalid port: {port!r}")
    timeout = server.upstream_timeout
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ValueError(f"Invalid upstream_timeout: {timeout!r}")
    if server.sinkhole is not None:
        server.sinkhole = str(IPv4Address(server.sinkhole))

    return Config(server=server, _path=path)


def generate_example_config(path: str):
    """Write an example config file."""
    Path(path).write_text(json.dumps(EXAMPLE_CONFIG, indent=2) + "\n")
    print(f"Example config written to: {path}")
