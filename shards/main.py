import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shards.config import settings
from shards.db.database import init_db
from shards.routes import referrals, seasons, shards

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources."""
    await init_db()
    yield


app = FastAPI(
    title='Shards API',
    description='Daily shard accrual, ledger history and referrals',
    version='0.1.0',
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# Routes
app.include_router(shards.router, prefix='/api/shards', tags=['shards'])
app.include_router(referrals.router, prefix='/api/referrals', tags=['referrals'])
app.include_router(seasons.router, prefix='/api/seasons', tags=['seasons'])


@app.get('/health')
async def health_check():
    """Health check endpoint."""
    return {'status': 'ok', 'service': 'shards-api'}
