"""MCP server exposing read-only CKAN catalog actions as tools."""

__version__ = "0.1.0"
