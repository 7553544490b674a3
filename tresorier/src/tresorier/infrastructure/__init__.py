"""
Infrastructure layer: persistence, gateways, caching, monitoring.
"""
