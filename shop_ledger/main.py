from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shop_ledger.core.config import settings
from shop_ledger.core.errors import LedgerError
from shop_ledger.core.logging import configure_logging
from shop_ledger.db.mongo import close_mongo_connection, connect_to_mongo, get_store
from shop_ledger.routes import auth, customers, parties, transactions, users
from shop_ledger.services.user_service import UserService

configure_logging(settings.LOG_LEVEL)


async def bootstrap_admin():
    """Create or refresh the configured admin account."""
    await UserService(get_store()).ensure_admin_user()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    await bootstrap_admin()
    yield
    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(customers.router)
app.include_router(transactions.router)
app.include_router(parties.router)
