from fastapi import FastAPI, APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
import logging

from config import client, CORS_ORIGINS
from routes.clients import router as clients_router
from routes.ledger import router as ledger_router
from services.store import StoreUnavailableError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create the main app without a prefix
app = FastAPI(title="Water Route")

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")


@api_router.get("/")
async def root():
    return {"message": "Water Route API"}


api_router.include_router(clients_router)
api_router.include_router(ledger_router)

# Include the router in the main app
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Error de conexión. Intentá de nuevo."},
    )


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()
