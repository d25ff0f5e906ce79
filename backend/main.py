import logging

from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from core.config import settings
from db.database import create_db_and_tables
from routers.admin import router as admin_router
from routers.inventory import router as inventory_router
from routers.notifications import router as notifications_router
from routers.stock_requests import router as stock_requests_router
from routers.vendors import router as vendors_router
from core.auth import fastapi_users, auth_backend
from contextlib import asynccontextmanager
from schemas.users import UserRead, UserCreate, UserUpdate

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Marketplace Stock API",
    description="Dealer/vendor marketplace: stock requests, inventory and notifications",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Authentication routes (fastapi-users)
app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"],)
app.include_router(fastapi_users.get_register_router(UserRead, UserCreate), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_reset_password_router(), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_verify_router(UserRead), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_users_router(UserRead, UserUpdate), prefix="/users", tags=["users"])

# Marketplace routes
app.include_router(stock_requests_router, prefix="/stock-requests", tags=["stock-requests"])
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
app.include_router(vendors_router, prefix="/vendors", tags=["vendors"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
