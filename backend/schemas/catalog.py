from datetime import date
from typing import Literal

from pydantic import BaseModel, Field


class PatientCreate(BaseModel):
    name: str = Field(min_length=1)
    document_id: str = Field(min_length=1)
    dob: date | None = None
    gender: Literal["Male", "Female", "Other"] | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    dependency: str | None = None


class Patient(PatientCreate):
    id: str


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    description: str = ""
    template_id: str | None = None


class Service(ServiceCreate):
    id: str


class ServiceUpdate(BaseModel):
    name: str | None = None
    price: float | None = Field(default=None, ge=0)
    description: str | None = None
    template_id: str | None = None
