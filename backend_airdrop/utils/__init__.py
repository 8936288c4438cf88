"""Address and display helpers shared by the analytics layer and API server."""
