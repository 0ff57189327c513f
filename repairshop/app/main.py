from fastapi import FastAPI

from repairshop.app.api.v1.router import router as v1_router
from repairshop.app.config import settings
from repairshop.app.logging_config import configure_logging

configure_logging(settings.log_level)

app = FastAPI(title="REPAIRSHOP ERP", version="0.1.0")
app.include_router(v1_router, prefix="/v1")
