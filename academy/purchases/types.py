from __future__ import annotations

from dataclasses import dataclass

from academy.db.models.entitlements import Entitlement
from academy.db.models.purchases import Purchase


@dataclass(frozen=True, slots=True)
class BillingInfo:
    name: str
    email: str
    address: str | None = None

    def as_snapshot(self) -> dict[str, str | None]:
        return {"name": self.name, "email": self.email, "address": self.address}


@dataclass(frozen=True, slots=True)
class ModulePurchaseRequest:
    user_id: int
    module_id: int
    billing: BillingInfo


@dataclass(frozen=True, slots=True)
class BundlePurchaseRequest:
    user_id: int
    bundle_id: int
    billing: BillingInfo


@dataclass(frozen=True, slots=True)
class GiftPurchaseRequest:
    payer_id: int
    recipient_id: int
    course_id: int
    billing: BillingInfo


PurchaseRequest = ModulePurchaseRequest | BundlePurchaseRequest | GiftPurchaseRequest


@dataclass(slots=True)
class PurchaseResult:
    purchase: Purchase
    entitlement: Entitlement
