from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.schemas.common import check_percent


# ============================================================
# Brand
# ============================================================

class BrandBase(BaseModel):
    name: str


class BrandCreate(BrandBase):
    pass


class BrandUpdate(BaseModel):
    name: Optional[str] = None


class Brand(BrandBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Medicine
# ============================================================

class MedicineBase(BaseModel):
    name: str
    brand_id: Optional[int] = None
    rate: float
    mrp: float
    base_rate: Optional[float] = None
    gst_percent: float = 0.0

    @field_validator("rate", "mrp")
    @classmethod
    def validate_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("gst_percent")
    @classmethod
    def validate_gst(cls, v):
        return check_percent(v)


class MedicineCreate(MedicineBase):
    pass


class MedicineUpdate(BaseModel):
    name: Optional[str] = None
    brand_id: Optional[int] = None
    rate: Optional[float] = None
    mrp: Optional[float] = None
    base_rate: Optional[float] = None
    gst_percent: Optional[float] = None

    @field_validator("gst_percent")
    @classmethod
    def validate_gst(cls, v):
        return check_percent(v)


class Medicine(MedicineBase):
    id: int
    brand_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Service
# ============================================================

class ServiceBase(BaseModel):
    name: str
    rate: float
    base_rate: Optional[float] = None
    gst_percent: float = 0.0
    description: Optional[str] = None
    is_procedure: bool = False

    @field_validator("rate")
    @classmethod
    def validate_rate(cls, v):
        if v < 0:
            raise ValueError("Rate cannot be negative")
        return v

    @field_validator("gst_percent")
    @classmethod
    def validate_gst(cls, v):
        return check_percent(v)


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    rate: Optional[float] = None
    base_rate: Optional[float] = None
    gst_percent: Optional[float] = None
    description: Optional[str] = None
    is_procedure: Optional[bool] = None

    @field_validator("gst_percent")
    @classmethod
    def validate_gst(cls, v):
        return check_percent(v)


class Service(ServiceBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Lab
# ============================================================

class LabBase(BaseModel):
    name: str


class LabCreate(LabBase):
    pass


class LabUpdate(BaseModel):
    name: Optional[str] = None


class Lab(LabBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
