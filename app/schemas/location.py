from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator


class StateBase(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class StateCreate(StateBase):
    pass


class StateUpdate(StateBase):
    pass


class State(StateBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class CityBase(BaseModel):
    name: str
    state_id: int

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class CityCreate(CityBase):
    pass


class CityUpdate(BaseModel):
    name: Optional[str] = None
    state_id: Optional[int] = None


class City(CityBase):
    id: int
    state_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
