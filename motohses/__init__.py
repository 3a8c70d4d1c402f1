"""Asyncio client, frame codec and local mock server for the HSES robot controller UDP protocol."""

__version__ = "0.0.1"