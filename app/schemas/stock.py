from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, field_validator


# ============================================================
# Stock franchise
# ============================================================

class StockItem(BaseModel):
    medicine_id: int
    medicine_name: str
    brand_name: Optional[str] = None
    rate: float
    mrp: float
    quantity: int


class FranchiseStock(BaseModel):
    franchise_id: int
    franchise_name: str
    items: List[StockItem] = []


class StockBatchRow(BaseModel):
    id: int
    franchise_id: int
    franchise_name: Optional[str] = None
    medicine_id: int
    medicine_name: Optional[str] = None
    brand_name: Optional[str] = None
    batch_number: str
    expiry_date: date
    quantity: int
    updated_at: datetime

    class Config:
        from_attributes = True


class RecallCreate(BaseModel):
    franchise_id: Optional[int] = None
    medicine_id: int
    batch_number: str
    expiry_date: date
    quantity: int
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v


class RecallResult(BaseModel):
    ok: bool = True
    remaining_batch_qty: int


class StockRecall(BaseModel):
    id: int
    stock_transaction_id: int
    franchise_id: int
    franchise_name: Optional[str] = None
    medicine_id: int
    medicine_name: Optional[str] = None
    batch_number: str
    expiry_date: date
    quantity: int
    created_by_user_id: Optional[int] = None
    recalled_at: datetime

    class Config:
        from_attributes = True


class ClosingStock(BaseModel):
    franchise_id: int
    franchise_name: str
    medicine_id: int
    medicine_name: str
    brand_name: Optional[str] = None
    quantity: int
    message: Optional[str] = None


# ============================================================
# Stock central (admin)
# ============================================================

class RefillItem(BaseModel):
    medicine_id: int
    quantity: int
    batch_number: str
    expiry_date: date

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v

    @field_validator("batch_number")
    @classmethod
    def validate_batch(cls, v):
        if not v or not v.strip():
            raise ValueError("Batch number is required")
        return v.strip()


class RefillRequest(BaseModel):
    items: List[RefillItem]

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("At least one item is required")
        return v


class AdminStockBalance(BaseModel):
    id: int
    medicine_id: int
    medicine_name: Optional[str] = None
    brand_name: Optional[str] = None
    quantity: int
    updated_at: datetime

    class Config:
        from_attributes = True


class AdminStockBatch(BaseModel):
    id: int
    medicine_id: int
    batch_number: str
    expiry_date: date
    quantity: int

    class Config:
        from_attributes = True
