from fetch_unroll.transports.base import Transport
from fetch_unroll.transports.registry import available_transports, load

__all__ = ["Transport", "available_transports", "load"]
