"""FastAPI main application."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from unifypay.config import settings
from unifypay.errors import register_error_handlers
from unifypay.routers import balance, dashboard, deposits, transactions
from unifypay.utils.timestamp import utcnow

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.version, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(transactions.router)
app.include_router(deposits.router)
app.include_router(balance.router)
app.include_router(dashboard.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.version,
        "documentation": app.docs_url,
        "endpoints": {
            "transactions": "/api/transactions",
            "deposits": "/api/deposits",
            "balance": "/api/balance",
            "dashboard": "/api/dashboard",
            "health": "/health",
        },
    }


@app.get("/health")
async def health():
    return {
        "success": True,
        "message": f"{settings.app_name} is running",
        "timestamp": utcnow(),
        "environment": settings.environment,
    }


if __name__ == "__main__":
    import uvicorn
    logger.info("Starting %s (%s)", settings.app_name, settings.environment)
    uvicorn.run(app, host="0.0.0.0", port=8000)
