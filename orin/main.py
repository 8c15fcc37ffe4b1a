# Run from project root: uvicorn orin.main:app --reload

import logging

from fastapi import FastAPI

from orin.api.routes import router
from orin.mcp.server import mcp_router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Orin Agentic Backend")
app.include_router(router)
app.include_router(mcp_router, prefix="/mcp")
