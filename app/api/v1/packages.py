"""
Forfaits: services et médicaments regroupés avec remise.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import get_current_active_user, require_admin
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.medicine import Medicine, Service
from app.models.package import Package, PackageDetail, PackageMedicine
from app.models.user import User
from app.schemas.package import (
    Package as PackageSchema,
    PackageCreate,
    PackageDetailCreate,
    PackageMedicineCreate,
    PackageUpdate,
)

router = APIRouter()


def _get_package(db: Session, package_id: int) -> Package:
    package = db.query(Package).filter(Package.id == package_id).first()
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")
    return package


def _ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Package).filter(func.lower(Package.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(Package.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Package already exists")


def _replace_lines(
    db: Session,
    package: Package,
    details: Optional[List[PackageDetailCreate]],
    medicines: Optional[List[PackageMedicineCreate]],
) -> None:
    if details is not None:
        package.details.clear()
        for line in details:
            if line.service_id is not None and not db.query(Service).filter(Service.id == line.service_id).first():
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
            package.details.append(PackageDetail(
                service_id=line.service_id,
                description=line.description,
                qty=line.qty,
                rate=line.rate,
                amount=round(line.qty * line.rate, 2),
            ))

    if medicines is not None:
        package.medicines.clear()
        for line in medicines:
            if not db.query(Medicine).filter(Medicine.id == line.medicine_id).first():
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Medicine not found")
            package.medicines.append(PackageMedicine(
                medicine_id=line.medicine_id,
                qty=line.qty,
                rate=line.rate,
                amount=round(line.qty * line.rate, 2),
            ))


def _recompute_total(package: Package) -> None:
    subtotal = sum(line.amount for line in package.details) + sum(line.amount for line in package.medicines)
    package.total_amount = round(subtotal * (1 - (package.discount_percent or 0) / 100), 2)


@router.get("/", response_model=Page[PackageSchema])
def read_packages(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = apply_search(db.query(Package), params.search, [Package.name])
    query = apply_sort(
        query,
        params,
        {"name": Package.name, "created_at": Package.created_at, "total_amount": Package.total_amount},
        default_sort="name",
        default_order="asc",
    )
    return paginate(query, params)


@router.post("/", response_model=PackageSchema, status_code=status.HTTP_201_CREATED)
def create_package(
    *,
    db: Session = Depends(get_db),
    package_in: PackageCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    """Crée un forfait; total = somme des lignes moins la remise."""
    _ensure_unique_name(db, package_in.name)

    package = Package(
        name=package_in.name.strip(),
        discount_percent=package_in.discount_percent,
        duration=package_in.duration,
    )
    db.add(package)
    _replace_lines(db, package, package_in.details, package_in.medicines)
    _recompute_total(package)

    db.commit()
    db.refresh(package)
    return package


@router.get("/{package_id}", response_model=PackageSchema)
def read_package(
    package_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_package(db, package_id)


@router.put("/{package_id}", response_model=PackageSchema)
def update_package(
    *,
    db: Session = Depends(get_db),
    package_id: int,
    package_in: PackageUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    package = _get_package(db, package_id)

    if package_in.name:
        _ensure_unique_name(db, package_in.name, exclude_id=package.id)
        package.name = package_in.name.strip()
    if package_in.discount_percent is not None:
        package.discount_percent = package_in.discount_percent
    if package_in.duration is not None:
        package.duration = package_in.duration

    _replace_lines(db, package, package_in.details, package_in.medicines)
    _recompute_total(package)

    db.commit()
    db.refresh(package)
    return package


@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_package(
    *,
    db: Session = Depends(get_db),
    package_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    package = _get_package(db, package_id)
    db.delete(package)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
