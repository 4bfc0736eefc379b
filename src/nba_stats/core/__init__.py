"""Core request pipeline: resolver, ESPN client, fan-out, normalizers, entrypoints.

This module is framework-agnostic. It has no dependency on MCP, FastMCP,
or any server framework; `server.py` adapts the entrypoints into MCP tools.
"""
