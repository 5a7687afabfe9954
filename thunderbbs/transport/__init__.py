"""ThunderBBS Transport Module - Telnet server and web API."""

from .telnet import TelnetServer
from .web import create_app

__all__ = ["TelnetServer", "create_app"]
