"""
Core: application exceptions.

Shared by the rpc client, analytics layer, and API server.
"""
