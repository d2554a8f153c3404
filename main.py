import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401  registers tables on Base.metadata
from config import settings
from database import init_db
from api.portfolio import router as portfolio_router
from api.purchase import router as purchase_router
from api.schemes import router as schemes_router
from api.validation import router as validation_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Purchase flow, plan quotes and installment tracking for real-estate investments",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(purchase_router)
app.include_router(schemes_router)
app.include_router(portfolio_router)
app.include_router(validation_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
