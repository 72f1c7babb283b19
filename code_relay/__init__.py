"""code-relay: test case runner over a remote code execution service."""

__version__ = "1.0.0"
