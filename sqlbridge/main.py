import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from sqlbridge.core.config import settings
from sqlbridge.api.router import api_router


# Engines are created and disposed per command call, nothing to open here
@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)
    logging.getLogger(__name__).info(f"{settings.APP_NAME} started")
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the SQL Bridge API"}
