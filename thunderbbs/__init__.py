"""
ThunderBBS - Multi-user Bulletin Board Service

A small BBS reachable over a web JSON API and a Telnet socket, sharing
one session-scoped command dispatcher backed by SQLite.
"""

__version__ = "0.1.0"
__author__ = "ThunderBBS Project"
