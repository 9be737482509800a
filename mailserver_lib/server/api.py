from fastapi import APIRouter, Request
from mailserver_lib.services.resolver import resolve_optional_service
from .health import get_health

router = APIRouter()


@router.get('/health')
def api_health(request: Request):
    store = resolve_optional_service(request, 'account_store')
    controller = resolve_optional_service(request, 'sync_controller')
    return get_health(store, controller)
