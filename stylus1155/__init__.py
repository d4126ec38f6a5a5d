"""SDK, HTTP service and CLI for Stylus ERC-1155 multi-token contracts."""

__version__ = "0.1.0"
