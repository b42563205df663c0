from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class ModuleAccessResponse(BaseModel):
    module_id: int
    user_id: int | None
    plan: str
    can_access: bool


class LessonResponse(BaseModel):
    lesson_id: int
    title: str
    is_free_preview: bool
    sort_order: int


class VisibleLessonsResponse(BaseModel):
    module_id: int
    user_id: int | None
    lessons: list[LessonResponse]


class UpgradeOfferResponse(BaseModel):
    bundle_id: int
    bundle_title: str
    owned_module_count: int = Field(ge=1)
    bundle_price: int = Field(ge=0)
    remaining_amount: int = Field(ge=0)
    currency: str


class UpgradeOffersResponse(BaseModel):
    user_id: int
    offers: list[UpgradeOfferResponse]


class EntitlementResponse(BaseModel):
    entitlement_id: int
    user_id: int
    course_id: int
    scope: str
    grant_type: str
    source_purchase_id: UUID | None
    expires_at: datetime | None
    created_at: datetime
    notes: str | None


class EntitlementsResponse(BaseModel):
    user_id: int
    entitlements: list[EntitlementResponse]


GrantTypeFilter = Literal["MODULE_PURCHASE", "BUNDLE_PURCHASE", "GIFT", "ADMIN_GRANT"]


class AccessMatrixResponse(BaseModel):
    user_id: int | None
    course_id: int | None
    grant_type: GrantTypeFilter | None
    entitlements: list[EntitlementResponse]


class AdminGrantRequest(BaseModel):
    user_id: int = Field(ge=1)
    course_id: int = Field(ge=1)
    expires_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=512)


class BillingInfoRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    address: str | None = Field(default=None, max_length=1024)


class ModulePurchaseBody(BaseModel):
    kind: Literal["MODULE"]
    user_id: int = Field(ge=1)
    module_id: int = Field(ge=1)
    billing: BillingInfoRequest


class BundlePurchaseBody(BaseModel):
    kind: Literal["BUNDLE"]
    user_id: int = Field(ge=1)
    bundle_id: int = Field(ge=1)
    billing: BillingInfoRequest


class GiftPurchaseBody(BaseModel):
    kind: Literal["GIFT"]
    payer_id: int = Field(ge=1)
    recipient_id: int = Field(ge=1)
    course_id: int = Field(ge=1)
    billing: BillingInfoRequest


PurchaseBody = Annotated[
    ModulePurchaseBody | BundlePurchaseBody | GiftPurchaseBody,
    Field(discriminator="kind"),
]


class PurchaseResponse(BaseModel):
    purchase_id: UUID
    user_id: int
    purchase_type: str
    course_id: int
    gift_recipient_id: int | None
    amount: int
    currency: str
    status: str
    invoice_number: str
    created_at: datetime
    paid_at: datetime | None


class PurchaseCommittedResponse(BaseModel):
    purchase: PurchaseResponse
    entitlement: EntitlementResponse


class PurchasesResponse(BaseModel):
    user_id: int
    purchases: list[PurchaseResponse]


class InvoiceResponse(BaseModel):
    purchase_id: UUID
    invoice: dict[str, Any]
