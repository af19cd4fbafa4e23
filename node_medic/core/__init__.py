"""
Core utilities: exception taxonomy shared by the RPC client, health checks,
configuration and API server.
"""
