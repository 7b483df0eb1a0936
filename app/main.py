# app/main.py
from dotenv import load_dotenv

load_dotenv()

import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config.appconfig import settings

# Apply logging configuration
logging.config.dictConfig(settings.LOGGING_CONFIG)

# Import routers
from app.billing.routes import router as billing_router
from app.database.connection import create_all_tables
from app.entity_resolver.routes import router as patients_router
from app.queue_engine.routes import router as queue_router
from app.system_services.appointment_routes import router as appointments_router
from app.system_services.medicine_routes import router as medicines_router
from app.system_services.prescription_routes import router as prescriptions_router
from app.users.auth_routers import router as auth_router

# Import configurations
from config.clinicconfig import clinic_settings
from config.reset_config_route import router as config_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await create_all_tables()
    print("\n")
    print("\n===============================================================================")
    print("===============================================================================")
    print(f" 🚀 Starting {settings.PROJECT_NAME}")
    print(f" ✅ Clinic: {clinic_settings.CLINIC_NAME}")
    print(f" ✅ Database: {settings.DATABASE_URL.split('://')[0]}")
    print(f" ✅ Clinic Timezone: {settings.CLINIC_TIMEZONE}")
    print(f" ✅ Default Tax Rate: {clinic_settings.DEFAULT_TAX_RATE}%")
    print(f" ✅ Invoice Due Days: {clinic_settings.INVOICE_DUE_DAYS}")
    if not settings.RESEND_API_KEY:
        print(" ⚠️  RESEND_API_KEY not set: verification and reset emails will fail to send")
    print("===============================================================================")
    print("===============================================================================\n")
    yield
    # Shutdown
    print("👋 Shutting down")


app = FastAPI(
    title="Clinic Token Queue",
    description="Front desk appointments, live token queue, prescriptions and billing",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"❌ Database error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Database error. Please try again."})


# Include routers with prefixes
app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(appointments_router, prefix="/api/appointments", tags=["Appointments"])
app.include_router(queue_router, prefix="/api/queue", tags=["Token Queue"])
app.include_router(patients_router, prefix="/api/patients", tags=["Patients"])
app.include_router(medicines_router, prefix="/api/medicines", tags=["Medicines"])
app.include_router(prescriptions_router, prefix="/api/prescriptions", tags=["Prescriptions"])
app.include_router(billing_router, prefix="/api/billing", tags=["Billing"])
app.include_router(config_router, prefix="/api/system")


@app.get("/health", tags=["System"])
async def health():
    return {"status": "ok", "clinic": clinic_settings.CLINIC_NAME}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
