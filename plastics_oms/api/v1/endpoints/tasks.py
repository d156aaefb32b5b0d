"""Department task endpoints for the signed-in worker."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import OrderTask, User
from plastics_oms.schemas.order import OrderTaskRead, TaskProgress
from plastics_oms.services.audit_service import log_action, snapshot

router: APIRouter = APIRouter()


@router.get("/my", response_model=list[OrderTaskRead])
def my_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[OrderTaskRead]:
    tasks = db.scalars(
        select(OrderTask)
        .where(OrderTask.assigned_to == current_user.id)
        .order_by(OrderTask.due_date.is_(None), OrderTask.due_date.asc(), OrderTask.id.desc())
    ).all()
    return [OrderTaskRead.model_validate(task) for task in tasks]


@router.patch("/{task_id}/progress", response_model=OrderTaskRead)
def update_progress(
    task_id: int,
    payload: TaskProgress,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderTaskRead:
    task: OrderTask | None = db.get(OrderTask, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if task.assigned_to != current_user.id and current_user.role != "ADMIN":
        raise HTTPException(status_code=403, detail="Forbidden")

    before = snapshot(task)
    task.status = payload.status
    task.ready_quantity = payload.ready_quantity
    task.progress_note = payload.progress_note
    db.flush()
    log_action(
        db,
        actor=current_user,
        action="UPDATE",
        table_name="order_tasks",
        record_id=task.id,
        old_data=before,
        new_data=snapshot(task),
    )
    db.commit()
    db.refresh(task)
    return OrderTaskRead.model_validate(task)
