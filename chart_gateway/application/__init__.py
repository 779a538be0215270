"""HTTP application layer: FastAPI app, routes, middleware and use-case services."""
