from fastapi import APIRouter, Depends

from app.config import Settings, get_settings
from app.interfaces.api.schemas import HealthRead
from app.utils import now_in_app_timezone

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthRead)
def health(settings: Settings = Depends(get_settings)) -> HealthRead:
    return HealthRead(
        status="ok",
        service=settings.app_name,
        timestamp=now_in_app_timezone().isoformat(),
    )
