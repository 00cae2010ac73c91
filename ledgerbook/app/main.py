from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledgerbook.app.api.v1.api import api_router
from ledgerbook.app.core.config import settings
from ledgerbook.app.core.database import engine, init_db
from ledgerbook.app.core.exceptions import LedgerError, ledger_exception_handler
from ledgerbook.app.core.logging_config import configure_logging

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db(engine)
    yield


app = FastAPI(title="Ledgerbook", lifespan=lifespan)

# ─── CORS: restrict to configured origins ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Accept", "X-Principal"],
)

app.add_exception_handler(LedgerError, ledger_exception_handler)

app.include_router(api_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
