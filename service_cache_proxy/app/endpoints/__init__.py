"""
Endpoint catalog for the cache proxy.
"""

from .catalog import EndpointCatalog, EndpointConfig, parse_policy

__all__ = ["EndpointCatalog", "EndpointConfig", "parse_policy"]
