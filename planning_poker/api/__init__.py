"""HTTP API routers for the planning poker server."""
