"""Health probe."""
from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(prefix="/api", tags=["system"])


class HealthStatus(BaseModel):
    ok: bool = True
    status: str
    version: str = "0.1.0"


@router.get("/health", response_model=HealthStatus)
def health_check():
    return HealthStatus(status="ok")
