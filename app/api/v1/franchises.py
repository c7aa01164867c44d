"""
Routes de gestion des franchises et de leurs frais (admin).
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import require_admin
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.core.security import get_password_hash
from app.db.base import get_db
from app.models.franchise import Franchise, FranchiseFeePayment
from app.models.team import Team
from app.models.user import User, UserRole
from app.schemas.franchise import (
    Franchise as FranchiseSchema,
    FranchiseCreate,
    FranchiseFeePayment as FranchiseFeePaymentSchema,
    FranchiseFeePaymentCreate,
    FranchiseFeeSummary,
    FranchiseUpdate,
)

router = APIRouter()
logger = get_logger(__name__)


def _get_franchise(db: Session, franchise_id: int) -> Franchise:
    franchise = db.query(Franchise).filter(Franchise.id == franchise_id).first()
    if not franchise:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Franchise not found"
        )
    return franchise


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Franchise).filter(func.lower(Franchise.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(Franchise.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Franchise name already exists"
        )


def _ensure_unique_email(db: Session, email: str, exclude_user_id: Optional[int] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already exists"
        )


def fee_summary(franchise: Franchise) -> dict:
    """Total dû, encaissé et solde (jamais négatif) des frais de franchise."""
    total_fee = franchise.franchise_fee_amount or 0.0
    received = round(sum(payment.amount for payment in franchise.fee_payments), 2)
    return {
        "franchise_id": franchise.id,
        "franchise_name": franchise.name,
        "total_fee_amount": total_fee,
        "total_received": received,
        "balance": round(max(0.0, total_fee - received), 2),
        "payments": franchise.fee_payments,
    }


@router.get("/", response_model=Page[FranchiseSchema])
def read_franchises(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    """Liste des franchises (recherche nom, ville, email)."""
    query = apply_search(
        db.query(Franchise),
        params.search,
        [Franchise.name, Franchise.city, Franchise.contact_email],
    )
    query = apply_sort(
        query,
        params,
        {"name": Franchise.name, "city": Franchise.city, "created_at": Franchise.created_at},
        default_sort="created_at",
    )
    return paginate(query, params)


@router.post("/", response_model=FranchiseSchema, status_code=status.HTTP_201_CREATED)
def create_franchise(
    *,
    db: Session = Depends(get_db),
    franchise_in: FranchiseCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    """
    Crée une franchise et son compte de connexion (rôle franchise)
    dans la même transaction.
    """
    _ensure_unique_name(db, franchise_in.name)
    _ensure_unique_email(db, franchise_in.user_email)

    user = User(
        name=franchise_in.user_name,
        email=franchise_in.user_email,
        hashed_password=get_password_hash(franchise_in.password),
        role=UserRole.FRANCHISE,
        is_active=True,
    )
    db.add(user)
    db.flush()

    franchise = Franchise(
        **franchise_in.model_dump(exclude={"user_name", "user_email", "password"}),
        user_id=user.id,
    )
    franchise.name = franchise.name.strip()
    db.add(franchise)
    db.commit()

    db.refresh(franchise)
    logger.info(
        "Franchise créée",
        extra={"extra_data": {"franchise_id": franchise.id, "user_id": user.id}},
    )
    return franchise


@router.get("/{franchise_id}", response_model=FranchiseSchema)
def read_franchise(
    franchise_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    return _get_franchise(db, franchise_id)


@router.put("/{franchise_id}", response_model=FranchiseSchema)
def update_franchise(
    *,
    db: Session = Depends(get_db),
    franchise_id: int,
    franchise_in: FranchiseUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    franchise = _get_franchise(db, franchise_id)
    update_data = franchise_in.model_dump(exclude_unset=True)

    if update_data.get("name"):
        _ensure_unique_name(db, update_data["name"], exclude_id=franchise.id)
        update_data["name"] = update_data["name"].strip()

    # Champs du compte de connexion
    user = franchise.user
    user_email = update_data.pop("user_email", None)
    user_name = update_data.pop("user_name", None)
    is_active = update_data.pop("is_active", None)
    if user_email and user_email != user.email:
        _ensure_unique_email(db, user_email, exclude_user_id=user.id)
        user.email = user_email
    if user_name:
        user.name = user_name
    if is_active is not None:
        user.is_active = is_active

    for field, value in update_data.items():
        if value is not None:
            setattr(franchise, field, value)

    db.commit()
    db.refresh(franchise)
    return franchise


@router.delete("/{franchise_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_franchise(
    *,
    db: Session = Depends(get_db),
    franchise_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    """
    Supprime la franchise; la base supprime en cascade équipes, salles,
    patients et documents. Les comptes franchise et équipe sont supprimés ensuite.
    """
    franchise = _get_franchise(db, franchise_id)
    user_ids = [franchise.user_id] + [
        row.user_id for row in db.query(Team.user_id).filter(Team.franchise_id == franchise.id).all()
    ]

    db.delete(franchise)
    db.flush()
    db.query(User).filter(User.id.in_(user_ids)).delete(synchronize_session=False)
    db.commit()

    logger.info("Franchise supprimée", extra={"extra_data": {"franchise_id": franchise_id}})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Frais de franchise
# ============================================================

@router.get("/{franchise_id}/fees", response_model=FranchiseFeeSummary)
def read_franchise_fees(
    franchise_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Any:
    return fee_summary(_get_franchise(db, franchise_id))


@router.post(
    "/{franchise_id}/fees",
    response_model=FranchiseFeePaymentSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_franchise_fee_payment(
    *,
    db: Session = Depends(get_db),
    franchise_id: int,
    payment_in: FranchiseFeePaymentCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    """Enregistre un paiement, sans dépasser le solde restant."""
    franchise = _get_franchise(db, franchise_id)
    balance = fee_summary(franchise)["balance"]

    if balance <= 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Franchise fee already fully paid"
        )
    if payment_in.amount > balance + 0.005:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payment exceeds remaining balance ({balance:.2f})"
        )

    payment = FranchiseFeePayment(
        franchise_id=franchise.id,
        created_by_user_id=current_user.id,
        **payment_in.model_dump(),
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)

    logger.info(
        "Paiement de frais enregistré",
        extra={"extra_data": {"franchise_id": franchise.id, "amount": payment.amount}},
    )
    return payment
