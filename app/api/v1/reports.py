from typing import Any, Optional
from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.core.deps import doctor_team_id, get_current_active_user, resolve_franchise_scope
from app.core.logging import get_logger
from app.core.pagination import ListParams, paginate_list
from app.db.base import get_db
from app.models.franchise import Franchise
from app.models.medicine import Medicine
from app.models.stock import StockBalance
from app.models.user import User, UserRole
from app.schemas.report import DayBookPage
from app.schemas.stock import ClosingStock
from app.services.day_book import DayBookFilters, build_day_book, compute_totals
from app.services.exports import PDF_MEDIA_TYPE, XLSX_MEDIA_TYPE, day_book_excel, day_book_pdf

logger = get_logger(__name__)

router = APIRouter()


def _day_book_filters(
    current_user: User,
    franchise_id: Optional[int],
    start_date: Optional[date],
    end_date: Optional[date],
    transaction_type: Optional[str],
    search: str = "",
    sort: Optional[str] = None,
    order: Optional[str] = None,
) -> DayBookFilters:
    """Périmètre du livre journal selon le rôle: un médecin ne voit que son équipe, sans factures."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must be before end_date"
        )
    return DayBookFilters(
        franchise_id=resolve_franchise_scope(current_user, franchise_id),
        team_id=doctor_team_id(current_user),
        include_bills=current_user.role != UserRole.DOCTOR,
        start_date=start_date,
        end_date=end_date,
        transaction_type=transaction_type,
        search=search,
        sort=sort,
        order=order or "asc",
    )


@router.get("/day-book", response_model=DayBookPage)
def read_day_book(
    params: ListParams = Depends(),
    franchise_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    transaction_type: Optional[str] = Query(None, pattern="^(CONSULTATION|MEDICINE_BILL)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
) -> Any:
    """Livre journal paginé, avec les totaux de toute la période filtrée."""
    filters = _day_book_filters(
        current_user, franchise_id, start_date, end_date, transaction_type,
        params.search, params.sort, params.order,
    )
    rows = build_day_book(db, filters)
    page = paginate_list(rows, params)
    page["totals"] = compute_totals(rows)
    return page


@router.get("/day-book/export")
def export_day_book(
    export_format: str = Query("xlsx", alias="format", pattern="^(xlsx|pdf)$"),
    franchise_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    transaction_type: Optional[str] = Query(None, pattern="^(CONSULTATION|MEDICINE_BILL)$"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
) -> Response:
    """Export du livre journal en Excel ou PDF."""
    filters = _day_book_filters(
        current_user, franchise_id, start_date, end_date, transaction_type,
        (search or "").strip(),
    )
    rows = build_day_book(db, filters)
    totals = compute_totals(rows)

    stamp = datetime.utcnow().strftime("%Y%m%d")
    if export_format == "pdf":
        period = f"{start_date or '...'} - {end_date or '...'}"
        content = day_book_pdf(rows, totals, period)
        media_type = PDF_MEDIA_TYPE
    else:
        content = day_book_excel(rows, totals)
        media_type = XLSX_MEDIA_TYPE

    logger.info(
        "Export livre journal",
        extra={"extra_data": {"format": export_format, "rows": len(rows), "user_id": current_user.id}},
    )
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="day_book_{stamp}.{export_format}"'},
    )


@router.get("/closing-stock", response_model=ClosingStock)
def read_closing_stock(
    franchise_id: int = Query(...),
    medicine_id: int = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
) -> Any:
    """Stock de clôture d'un médicament dans une franchise."""
    scope = resolve_franchise_scope(current_user, franchise_id)
    if scope != franchise_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Franchise does not belong to you"
        )

    franchise = db.query(Franchise).filter(Franchise.id == franchise_id).first()
    if not franchise:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Franchise not found")
    medicine = db.query(Medicine).filter(Medicine.id == medicine_id).first()
    if not medicine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")

    balance = db.query(StockBalance).filter(
        StockBalance.franchise_id == franchise_id,
        StockBalance.medicine_id == medicine_id,
    ).first()

    return {
        "franchise_id": franchise.id,
        "franchise_name": franchise.name,
        "medicine_id": medicine.id,
        "medicine_name": medicine.name,
        "brand_name": medicine.brand_name,
        "quantity": balance.quantity if balance else 0,
        "message": None if balance else "No stock found for this medicine",
    }
