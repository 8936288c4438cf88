"""
API server package: HTTP/REST interface.

Validates wallet addresses at the boundary, delegates to the analytics
layer, and maps failures to 400 / 500 JSON responses.
"""
