from fastapi import APIRouter
from sqlbridge.api.endpoints import commands

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(commands.router)
