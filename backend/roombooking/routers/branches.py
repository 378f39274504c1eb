# backend/roombooking/routers/branches.py
# Reads are public; writes require an admin session. DELETE cascades to rooms
# and reservations.

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models.generated import Branches as DBBranches
from ..schemas.branches import (
    BranchCreate,
    BranchUpdate,
    BranchRead,
)

router = APIRouter(prefix="/branches", tags=["branches"])


@router.get("/", response_model=list[BranchRead])
def list_branches(db: Session = Depends(get_db)):
    return db.query(DBBranches).order_by(DBBranches.name).all()


@router.get("/{id}", response_model=BranchRead)
def get_branch(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBranches, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Branch not found")
    return obj


@router.post(
    "/",
    response_model=BranchRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_branch(
    data: BranchCreate,
    db: Session = Depends(get_db),
):
    obj = DBBranches(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=BranchRead, dependencies=[Depends(require_admin)])
def update_branch(
    id: int,
    data: BranchUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBBranches, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Branch not found")

    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and not (changes["name"] or "").strip():
        raise HTTPException(status_code=400, detail="name must not be empty")

    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_branch(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBranches, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Branch not found")

    db.delete(obj)
    db.commit()
