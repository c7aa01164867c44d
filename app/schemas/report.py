from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class DayBookRow(BaseModel):
    id: str
    original_id: int
    transaction_type: str
    date: Optional[datetime] = None
    patient_no: Optional[str] = None
    patient_name: Optional[str] = None
    mobile: Optional[str] = None
    gender: Optional[str] = None
    team_name: Optional[str] = None
    reference_number: str
    total_amount: float
    received_amount: float
    balance_amount: float
    remarks: Optional[str] = None


class DayBookTotals(BaseModel):
    total_amount: float
    received_amount: float
    balance_amount: float


class DayBookPage(BaseModel):
    data: List[DayBookRow]
    page: int
    per_page: int = Field(serialization_alias="perPage")
    total: int
    total_pages: int = Field(serialization_alias="totalPages")
    totals: DayBookTotals
