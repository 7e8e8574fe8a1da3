"""API layer: middleware, dependencies and routers."""
