"""Application factory and lifecycle for the planning poker server."""
