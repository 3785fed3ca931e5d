# getdead/__init__.py
"""Get Dead: a server-authoritative chase game with a scripted solo opponent."""

__version__ = "1.0.0"
