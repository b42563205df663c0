from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UpgradeQuote:
    bundle_id: int
    bundle_price: int
    owned_price_sum: int
    owned_module_ids: tuple[int, ...]
    amount: int
