from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from academy.db.models.purchases import Purchase
from academy.db.repo.purchases_repo import PurchasesRepo
from academy.purchases.errors import PurchaseNotFoundError


async def list_purchases(
    session: AsyncSession,
    *,
    user_id: int,
    limit: int = 100,
) -> list[Purchase]:
    return await PurchasesRepo.list_by_user(session, user_id=user_id, limit=limit)


async def get_invoice(
    session: AsyncSession,
    *,
    user_id: int,
    purchase_id: UUID,
) -> dict[str, object]:
    # Only the payer sees the invoice, gift recipients included.
    purchase = await PurchasesRepo.get_for_payer(session, purchase_id=purchase_id, user_id=user_id)
    if purchase is None:
        raise PurchaseNotFoundError(purchase_id)
    return dict(purchase.invoice)
