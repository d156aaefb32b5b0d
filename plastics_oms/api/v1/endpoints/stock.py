"""Stock positions and the stock movement ledger."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import StockItem, StockMovement, User
from plastics_oms.schemas.stock import StockCreate, StockMovementRead, StockRead, StockUpdate
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.rbac import can_create_stock, can_edit_stock, can_view_stock, ensure_permission

router: APIRouter = APIRouter()


@router.get("", response_model=list[StockRead])
def list_stock(
    category: str = "film",
    product: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[StockRead]:
    stmt = (
        select(StockItem)
        .where(StockItem.category == category)
        .order_by(StockItem.product, StockItem.micron, StockItem.width)
    )
    if product:
        stmt = stmt.where(StockItem.product == product)
    return [StockRead.model_validate(item) for item in db.scalars(stmt).all()]


@router.post("", response_model=StockRead, status_code=status.HTTP_201_CREATED)
def create_stock(
    payload: StockCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StockRead:
    ensure_permission(can_create_stock(current_user))
    item = StockItem(**payload.model_dump())
    db.add(item)
    db.flush()
    if item.kg > 0:
        db.add(
            StockMovement(
                stock_item_id=item.id,
                movement_type="in",
                kg=item.kg,
                quantity=item.quantity,
                reason="stock_create",
                created_by=current_user.id,
            )
        )
    log_action(db, actor=current_user, action="INSERT", table_name="stock_items", record_id=item.id, new_data=snapshot(item))
    db.commit()
    db.refresh(item)
    return StockRead.model_validate(item)


@router.get("/movements", response_model=list[StockMovementRead])
def list_movements(
    category: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[StockMovementRead]:
    ensure_permission(can_view_stock(current_user))
    stmt = select(StockMovement).order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit)
    if category:
        stmt = stmt.join(StockItem, StockItem.id == StockMovement.stock_item_id).where(StockItem.category == category)
    return [StockMovementRead.model_validate(row) for row in db.scalars(stmt).all()]


def _get_item_or_404(db: Session, stock_id: int) -> StockItem:
    item: StockItem | None = db.get(StockItem, stock_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Stock item not found")
    return item


@router.patch("/{stock_id}", response_model=StockRead)
def update_stock(
    stock_id: int,
    payload: StockUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StockRead:
    ensure_permission(can_edit_stock(current_user))
    item = _get_item_or_404(db, stock_id)
    before = snapshot(item)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(item, key, value)

    delta = float(item.kg or 0) - float(before["kg"] or 0)
    if delta:
        db.add(
            StockMovement(
                stock_item_id=item.id,
                movement_type="in" if delta > 0 else "out",
                kg=abs(delta),
                quantity=0,
                reason="adjustment",
                created_by=current_user.id,
            )
        )
    db.flush()
    log_action(
        db,
        actor=current_user,
        action="UPDATE",
        table_name="stock_items",
        record_id=item.id,
        old_data=before,
        new_data=snapshot(item),
    )
    db.commit()
    db.refresh(item)
    return StockRead.model_validate(item)


@router.delete("/{stock_id}")
def delete_stock(
    stock_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    ensure_permission(can_edit_stock(current_user))
    item = _get_item_or_404(db, stock_id)
    before = snapshot(item)
    db.delete(item)
    log_action(db, actor=current_user, action="DELETE", table_name="stock_items", record_id=stock_id, old_data=before)
    db.commit()
    return {"success": True}
