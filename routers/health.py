from typing import List, Optional

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel


# Оркестратор (и зависимые сервисы) опрашивают /health/ready и ждут окончания бутстрапа
router = APIRouter(
    prefix='/health',
    tags=['Health'],
)


class BootstrapStatus(BaseModel):
    status: str
    completed_phases: List[str] = []
    failed_phase: Optional[str] = None
    error: Optional[str] = None


@router.get('/live')
async def live():
    """Процесс жив. На состояние БД не смотрит."""
    return {'status': 'alive'}


@router.get('/ready', response_model=BootstrapStatus)
async def ready(request: Request, response: Response):
    # Готовы, когда бутстрап закончился - успешно или с залогированной ошибкой
    result = getattr(request.app.state, 'bootstrap_result', None)
    if result is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return BootstrapStatus(status='pending')

    return BootstrapStatus(
        status='ok' if result.ok else 'failed',
        completed_phases=result.completed_phases,
        failed_phase=result.failed_phase,
        error=str(result.error) if result.error else None,
    )
