"""Transport adapters: ASGI sending, error pages, the dev server."""
