"""HTTP API: FastAPI app, routers and the SQLite store."""
