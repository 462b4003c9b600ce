"""HTTP integration (Starlette / FastAPI)."""
