from fastapi import APIRouter

from app.api import proxy

api_router = APIRouter()

# Catch-all proxy route
api_router.include_router(proxy.router, tags=["Proxy"])
