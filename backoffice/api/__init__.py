"""API layer - FastAPI routers, schemas and middleware."""
