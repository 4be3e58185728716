"""Background task status endpoint."""

from fastapi import APIRouter, Depends, HTTPException

from photomind.auth.dependencies import get_current_user
from photomind.auth.models import User
from photomind.dependencies import get_task_queue
from photomind.tasks import TaskQueue


router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=dict, operation_id="get_task")
async def get_task(
    task_id: str,
    user: User = Depends(get_current_user),
    task_queue: TaskQueue = Depends(get_task_queue),
):
    record = task_queue.get(task_id)
    if record is None or record.owner_id != user.id:
        raise HTTPException(status_code=404, detail="Task not found")
    return record.to_dict()
