from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UpgradeOffer:
    bundle_id: int
    bundle_title: str
    owned_module_count: int
    bundle_price: int
    remaining_amount: int
    currency: str
