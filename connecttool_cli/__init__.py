"""Command-line client for the ConnectTool lobby/VPN service.

Every invocation issues one RPC over the service's local socket under a five
second deadline and prints the reply as plain lines or, with --json, as JSON.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
