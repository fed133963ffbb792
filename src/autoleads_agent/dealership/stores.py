"""Storage and messaging collaborators of the dealership tools, plus in-memory implementations."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from autoleads_agent.llm_core.logger import get_logger
from .models import Car, Lead, LeadId, Showroom, TenantId, normalize_display_code

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchCriteria:
    """Inventory filters. Text filters are case-insensitive substring matches."""

    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    transmission: Optional[str] = None
    color: Optional[str] = None
    fuel_type: Optional[str] = None
    max_km: Optional[int] = None

    def matches(self, car: Car) -> bool:
        if self.brand and not _contains(car.brand, self.brand):
            return False
        if self.model and not _contains(car.model, self.model):
            return False
        if self.year is not None and car.year != self.year:
            return False
        if self.min_price is not None and car.price < self.min_price:
            return False
        if self.max_price is not None and car.price > self.max_price:
            return False
        if self.transmission and car.transmission != self.transmission:
            return False
        if self.color and not _contains(car.color, self.color):
            return False
        if self.fuel_type and car.fuel_type != self.fuel_type:
            return False
        if self.max_km is not None and (car.km is None or car.km > self.max_km):
            return False
        return True


def _contains(value: Optional[str], needle: str) -> bool:
    return value is not None and needle.lower() in value.lower()


class InventoryStore(Protocol):
    async def search(self, tenant_id: TenantId, criteria: SearchCriteria, limit: int) -> List[Car]: ...

    async def find_by_code(self, tenant_id: TenantId, display_code: str) -> Optional[Car]: ...


class LeadStore(Protocol):
    async def get(self, lead_id: LeadId) -> Optional[Lead]: ...

    async def save(self, lead: Lead) -> None: ...


class ShowroomDirectory(Protocol):
    async def get(self, tenant_id: TenantId) -> Optional[Showroom]: ...


class MediaSender(Protocol):
    async def send_image(self, phone: str, url: str, caption: str) -> bool:
        """Send one image. Returns False if the provider rejected it."""
        ...


class InMemoryInventory:
    """Inventory kept in a list. Newest cars are listed first in search results."""

    def __init__(self, cars: Iterable[Car] = ()) -> None:
        self._cars: List[Car] = []
        for car in cars:
            self.add(car)

    def add(self, car: Car) -> None:
        self._cars.insert(0, car)

    async def search(self, tenant_id: TenantId, criteria: SearchCriteria, limit: int) -> List[Car]:
        found = [car for car in self._cars if car.tenant_id == tenant_id and car.available and criteria.matches(car)]
        return found[:limit]

    async def find_by_code(self, tenant_id: TenantId, display_code: str) -> Optional[Car]:
        code = normalize_display_code(display_code)
        for car in self._cars:
            if car.tenant_id == tenant_id and car.display_code == code and car.available:
                return car
        return None


class InMemoryLeadStore:
    def __init__(self, leads: Iterable[Lead] = ()) -> None:
        self._leads: Dict[LeadId, Lead] = {lead.id: lead for lead in leads}

    async def get(self, lead_id: LeadId) -> Optional[Lead]:
        lead = self._leads.get(lead_id)
        return lead.model_copy(deep=True) if lead else None

    async def save(self, lead: Lead) -> None:
        self._leads[lead.id] = lead.model_copy(deep=True)


class InMemoryShowroomDirectory:
    def __init__(self, showrooms: Iterable[Showroom] = ()) -> None:
        self._showrooms: Dict[TenantId, Showroom] = {s.tenant_id: s for s in showrooms}

    async def get(self, tenant_id: TenantId) -> Optional[Showroom]:
        return self._showrooms.get(tenant_id)


class OutboxMediaSender:
    """Records every image instead of delivering it. Used by the CLI and in tests."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    async def send_image(self, phone: str, url: str, caption: str) -> bool:
        logger.info(f"Outbox: image to {phone}: {caption}")
        self.sent.append((phone, url, caption))
        return True
