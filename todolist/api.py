import logging

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import JSONResponse

from .errors import NotFoundError, ValidationError
from .service import TaskService

router = APIRouter(prefix='/tasks')
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = 'Task not found'
ORDERING_HEADER = 'X-Task-Ordering'


def get_service(request: Request) -> TaskService:
    svc = getattr(request.app.state, 'task_service', None)
    if svc is None:
        raise HTTPException(status_code=503, detail='task store not initialized')
    return svc


async def _json_body(request: Request) -> dict:
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError('invalid JSON')
    if not isinstance(payload, dict):
        raise ValidationError('JSON body must be an object')
    return payload


async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse({'message': NOT_FOUND_MESSAGE}, status_code=404)


async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse({'message': str(exc)}, status_code=400)


@router.get('', response_class=JSONResponse)
async def list_tasks(request: Request):
    """All tasks in store order (newest first for the database store).

    The order is named in the X-Task-Ordering header so clients can place new
    tasks the same way without refetching.
    """
    svc = get_service(request)
    tasks = await svc.list()
    return JSONResponse([t.to_json() for t in tasks], headers={ORDERING_HEADER: svc.ordering})


@router.post('', response_class=JSONResponse)
async def create_task(request: Request):
    """
    Create a task. Expects JSON payload with:
    - text: str (required, not blank)
    """
    payload = await _json_body(request)
    if 'text' not in payload:
        raise ValidationError('text is required')
    task = await get_service(request).create(payload['text'])
    return task.to_json()


@router.get('/{task_id}', response_class=JSONResponse)
async def get_task(task_id: str, request: Request):
    task = await get_service(request).get(task_id)
    return task.to_json()


@router.patch('/{task_id}', response_class=JSONResponse)
async def update_task(task_id: str, request: Request):
    """
    Update a task. Expects JSON payload with optional fields:
    - text: str
    - completed: bool
    """
    payload = await _json_body(request)
    task = await get_service(request).update(task_id, payload)
    return task.to_json()


@router.delete('/{task_id}', response_class=JSONResponse)
async def delete_task(task_id: str, request: Request):
    await get_service(request).delete(task_id)
    return {'message': 'Deleted successfully'}
