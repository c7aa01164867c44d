"""
Catalogue admin: marques, médicaments, services et laboratoires.
Lecture ouverte à tout utilisateur connecté, écriture réservée à l'admin.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.deps import get_current_active_user, require_admin
from app.core.logging import get_logger
from app.core.pagination import ListParams, Page, apply_search, apply_sort, paginate
from app.db.base import get_db
from app.models.medicine import Brand, Lab, Medicine, Service
from app.models.user import User
from app.schemas.medicine import (
    Brand as BrandSchema,
    BrandCreate,
    BrandUpdate,
    Lab as LabSchema,
    LabCreate,
    LabUpdate,
    Medicine as MedicineSchema,
    MedicineCreate,
    MedicineUpdate,
    Service as ServiceSchema,
    ServiceCreate,
    ServiceUpdate,
)

brands_router = APIRouter()
medicines_router = APIRouter()
services_router = APIRouter()
labs_router = APIRouter()

logger = get_logger(__name__)


def _get_or_404(db: Session, model, item_id: int, label: str):
    item = db.query(model).filter(model.id == item_id).first()
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return item


def _ensure_unique_name(db: Session, model, name: str, label: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(model).filter(func.lower(model.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{label} already exists")


def default_base_rate(rate: float, gst_percent: float) -> float:
    """Prix hors taxe déduit du prix TTC."""
    return round(rate / (1 + (gst_percent or 0) / 100), 2)


def _name_sort(model):
    return {"name": model.name, "created_at": model.created_at}


# ============================================================
# Marques
# ============================================================

@brands_router.get("/", response_model=Page[BrandSchema])
def read_brands(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = apply_search(db.query(Brand), params.search, [Brand.name])
    query = apply_sort(query, params, _name_sort(Brand), default_sort="name", default_order="asc")
    return paginate(query, params)


@brands_router.post("/", response_model=BrandSchema, status_code=status.HTTP_201_CREATED)
def create_brand(
    *,
    db: Session = Depends(get_db),
    brand_in: BrandCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    _ensure_unique_name(db, Brand, brand_in.name, "Brand")
    brand = Brand(name=brand_in.name.strip())
    db.add(brand)
    db.commit()
    db.refresh(brand)
    return brand


@brands_router.get("/{brand_id}", response_model=BrandSchema)
def read_brand(
    brand_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_or_404(db, Brand, brand_id, "Brand")


@brands_router.put("/{brand_id}", response_model=BrandSchema)
def update_brand(
    *,
    db: Session = Depends(get_db),
    brand_id: int,
    brand_in: BrandUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    brand = _get_or_404(db, Brand, brand_id, "Brand")
    if brand_in.name:
        _ensure_unique_name(db, Brand, brand_in.name, "Brand", exclude_id=brand.id)
        brand.name = brand_in.name.strip()
    db.commit()
    db.refresh(brand)
    return brand


@brands_router.delete("/{brand_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_brand(
    *,
    db: Session = Depends(get_db),
    brand_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    brand = _get_or_404(db, Brand, brand_id, "Brand")
    if brand.medicines:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Brand is used by medicines and cannot be deleted"
        )
    db.delete(brand)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Médicaments
# ============================================================

@medicines_router.get("/", response_model=Page[MedicineSchema])
def read_medicines(
    params: ListParams = Depends(),
    brand_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = db.query(Medicine)
    if brand_id is not None:
        query = query.filter(Medicine.brand_id == brand_id)
    query = apply_search(query, params.search, [Medicine.name])
    query = apply_sort(
        query,
        params,
        {"name": Medicine.name, "created_at": Medicine.created_at, "rate": Medicine.rate, "mrp": Medicine.mrp},
        default_sort="name",
        default_order="asc",
    )
    return paginate(query, params)


@medicines_router.post("/", response_model=MedicineSchema, status_code=status.HTTP_201_CREATED)
def create_medicine(
    *,
    db: Session = Depends(get_db),
    medicine_in: MedicineCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    _ensure_unique_name(db, Medicine, medicine_in.name, "Medicine")
    if medicine_in.brand_id is not None:
        _get_or_404(db, Brand, medicine_in.brand_id, "Brand")

    data = medicine_in.model_dump()
    data["name"] = data["name"].strip()
    if data.get("base_rate") is None:
        data["base_rate"] = default_base_rate(data["rate"], data["gst_percent"])

    medicine = Medicine(**data)
    db.add(medicine)
    db.commit()
    db.refresh(medicine)

    logger.info("Médicament créé", extra={"extra_data": {"medicine_id": medicine.id}})
    return medicine


@medicines_router.get("/{medicine_id}", response_model=MedicineSchema)
def read_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_or_404(db, Medicine, medicine_id, "Medicine")


@medicines_router.put("/{medicine_id}", response_model=MedicineSchema)
def update_medicine(
    *,
    db: Session = Depends(get_db),
    medicine_id: int,
    medicine_in: MedicineUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    medicine = _get_or_404(db, Medicine, medicine_id, "Medicine")
    update_data = medicine_in.model_dump(exclude_unset=True)

    if update_data.get("name"):
        _ensure_unique_name(db, Medicine, update_data["name"], "Medicine", exclude_id=medicine.id)
        update_data["name"] = update_data["name"].strip()
    if update_data.get("brand_id") is not None:
        _get_or_404(db, Brand, update_data["brand_id"], "Brand")

    for field, value in update_data.items():
        setattr(medicine, field, value)

    if "base_rate" not in update_data and ("rate" in update_data or "gst_percent" in update_data):
        medicine.base_rate = default_base_rate(medicine.rate, medicine.gst_percent)

    db.commit()
    db.refresh(medicine)
    return medicine


@medicines_router.delete("/{medicine_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_medicine(
    *,
    db: Session = Depends(get_db),
    medicine_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    medicine = _get_or_404(db, Medicine, medicine_id, "Medicine")
    db.delete(medicine)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Services
# ============================================================

@services_router.get("/", response_model=Page[ServiceSchema])
def read_services(
    params: ListParams = Depends(),
    is_procedure: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = db.query(Service)
    if is_procedure is not None:
        query = query.filter(Service.is_procedure == is_procedure)
    query = apply_search(query, params.search, [Service.name])
    query = apply_sort(query, params, _name_sort(Service), default_sort="name", default_order="asc")
    return paginate(query, params)


@services_router.post("/", response_model=ServiceSchema, status_code=status.HTTP_201_CREATED)
def create_service(
    *,
    db: Session = Depends(get_db),
    service_in: ServiceCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    _ensure_unique_name(db, Service, service_in.name, "Service")
    data = service_in.model_dump()
    data["name"] = data["name"].strip()
    if data.get("base_rate") is None:
        data["base_rate"] = default_base_rate(data["rate"], data["gst_percent"])

    service = Service(**data)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@services_router.get("/{service_id}", response_model=ServiceSchema)
def read_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_or_404(db, Service, service_id, "Service")


@services_router.put("/{service_id}", response_model=ServiceSchema)
def update_service(
    *,
    db: Session = Depends(get_db),
    service_id: int,
    service_in: ServiceUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    service = _get_or_404(db, Service, service_id, "Service")
    update_data = service_in.model_dump(exclude_unset=True)

    if update_data.get("name"):
        _ensure_unique_name(db, Service, update_data["name"], "Service", exclude_id=service.id)
        update_data["name"] = update_data["name"].strip()

    for field, value in update_data.items():
        setattr(service, field, value)

    if "base_rate" not in update_data and ("rate" in update_data or "gst_percent" in update_data):
        service.base_rate = default_base_rate(service.rate, service.gst_percent)

    db.commit()
    db.refresh(service)
    return service


@services_router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    *,
    db: Session = Depends(get_db),
    service_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    service = _get_or_404(db, Service, service_id, "Service")
    db.delete(service)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# Laboratoires
# ============================================================

@labs_router.get("/", response_model=Page[LabSchema])
def read_labs(
    params: ListParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    query = apply_search(db.query(Lab), params.search, [Lab.name])
    query = apply_sort(query, params, _name_sort(Lab), default_sort="name", default_order="asc")
    return paginate(query, params)


@labs_router.post("/", response_model=LabSchema, status_code=status.HTTP_201_CREATED)
def create_lab(
    *,
    db: Session = Depends(get_db),
    lab_in: LabCreate,
    current_user: User = Depends(require_admin),
) -> Any:
    _ensure_unique_name(db, Lab, lab_in.name, "Lab")
    lab = Lab(name=lab_in.name.strip())
    db.add(lab)
    db.commit()
    db.refresh(lab)
    return lab


@labs_router.get("/{lab_id}", response_model=LabSchema)
def read_lab(
    lab_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    return _get_or_404(db, Lab, lab_id, "Lab")


@labs_router.put("/{lab_id}", response_model=LabSchema)
def update_lab(
    *,
    db: Session = Depends(get_db),
    lab_id: int,
    lab_in: LabUpdate,
    current_user: User = Depends(require_admin),
) -> Any:
    lab = _get_or_404(db, Lab, lab_id, "Lab")
    if lab_in.name:
        _ensure_unique_name(db, Lab, lab_in.name, "Lab", exclude_id=lab.id)
        lab.name = lab_in.name.strip()
    db.commit()
    db.refresh(lab)
    return lab


@labs_router.delete("/{lab_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lab(
    *,
    db: Session = Depends(get_db),
    lab_id: int,
    current_user: User = Depends(require_admin),
) -> Response:
    lab = _get_or_404(db, Lab, lab_id, "Lab")
    db.delete(lab)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
