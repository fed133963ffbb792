"""Dealership domain: inventory, leads, showroom details and the tools that act on them."""

from .financing import FinancingPlan, format_rupiah, monthly_installment, plan_financing, INTEREST_RATES
from .models import Car, Lead, Showroom, normalize_display_code
from .stores import (
    SearchCriteria,
    InventoryStore,
    LeadStore,
    ShowroomDirectory,
    MediaSender,
    InMemoryInventory,
    InMemoryLeadStore,
    InMemoryShowroomDirectory,
    OutboxMediaSender,
)
from .toolkit import DealershipToolkit, sample_inventory

__all__ = [
    "FinancingPlan",
    "format_rupiah",
    "monthly_installment",
    "plan_financing",
    "INTEREST_RATES",
    "Car",
    "Lead",
    "Showroom",
    "normalize_display_code",
    "SearchCriteria",
    "InventoryStore",
    "LeadStore",
    "ShowroomDirectory",
    "MediaSender",
    "InMemoryInventory",
    "InMemoryLeadStore",
    "InMemoryShowroomDirectory",
    "OutboxMediaSender",
    "DealershipToolkit",
    "sample_inventory",
]
