from __future__ import annotations

from importlib import import_module
from importlib.metadata import entry_points
from typing import Dict

from fetch_unroll.errors import ConfigError
from fetch_unroll.transports.base import Transport

ENTRY_POINT_GROUP = "fetch_unroll.transports"

BUILTIN_TRANSPORTS = {
    "requests": "fetch_unroll.transports.requests_transport:RequestsTransport",
    "httpx": "fetch_unroll.transports.httpx_transport:HttpxTransport",
}


def _load_builtin(ref: str):
    module_name, attr = ref.split(":", 1)
    return getattr(import_module(module_name), attr)


def available_transports() -> Dict[str, Transport]:
    transports: Dict[str, Transport] = {}
    for name, ref in BUILTIN_TRANSPORTS.items():
        transports[name] = _load_builtin(ref)()
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        transport_cls = ep.load()
        transport: Transport = transport_cls()
        transports[transport.name] = transport
    return transports


def load(name: str) -> Transport:
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        if ep.name == name:
            transport_cls = ep.load()
            return transport_cls()
    ref = BUILTIN_TRANSPORTS.get(name)
    if ref is not None:
        return _load_builtin(ref)()
    raise ConfigError(f"Transport '{name}' not found")
