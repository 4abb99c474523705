"""HTTP API — FastAPI application, routes and dependencies."""
