"""Domain records the dealership tools read and update."""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

TenantId = Union[int, str]
LeadId = Union[int, str]


def normalize_display_code(code: str) -> str:
    """Canonical form of a display code: no ``#``, no whitespace, upper-case.

    ``"#a01"``, ``" A01 "`` and ``"a 01"`` all become ``"A01"``.
    """
    return "".join(ch for ch in code if ch != "#" and not ch.isspace()).upper()


class Car(BaseModel):
    """A car in a tenant's inventory."""

    id: Union[int, str]
    tenant_id: TenantId
    display_code: str
    brand: str
    model: str
    year: int
    price: int
    public_name: Optional[str] = None
    color: Optional[str] = None
    transmission: Optional[str] = None
    km: Optional[int] = None
    fuel_type: Optional[str] = None
    key_features: List[str] = Field(default_factory=list)
    condition_notes: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    status: str = "available"

    @field_validator("display_code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return normalize_display_code(value)

    @property
    def name(self) -> str:
        return self.public_name or f"{self.brand} {self.model} {self.year}"

    @property
    def available(self) -> bool:
        return self.status == "available"


class Lead(BaseModel):
    """A prospective buyer the conversation belongs to."""

    id: LeadId
    tenant_id: TenantId
    customer_phone: str
    customer_name: Optional[str] = None
    status: str = "new"
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    car_id: Optional[Union[int, str]] = None

    def add_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n\n{note}" if self.notes else note

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)


class Showroom(BaseModel):
    """Contact and location details of a tenant's showroom."""

    tenant_id: TenantId
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    maps_url: Optional[str] = None
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    business_hours: Optional[Dict[str, str]] = None
