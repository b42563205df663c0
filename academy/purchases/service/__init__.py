from __future__ import annotations

from .builder import _build_invoice, _build_purchase
from .bundle import purchase_bundle
from .commit import _commit_purchase
from .constants import (
    PURCHASE_STATUS_PAID,
    PURCHASE_TYPE_BUNDLE,
    PURCHASE_TYPE_GIFT,
    PURCHASE_TYPE_MODULE,
)
from .gift import purchase_gift
from .module import purchase_module
from .queries import get_invoice, list_purchases
from .submit import submit
from .utilities import _build_invoice_number


class PurchaseService:
    _build_invoice_number = staticmethod(_build_invoice_number)
    _build_invoice = staticmethod(_build_invoice)
    _build_purchase = staticmethod(_build_purchase)
    _commit_purchase = staticmethod(_commit_purchase)
    purchase_module = staticmethod(purchase_module)
    purchase_bundle = staticmethod(purchase_bundle)
    purchase_gift = staticmethod(purchase_gift)
    submit = staticmethod(submit)
    list_purchases = staticmethod(list_purchases)
    get_invoice = staticmethod(get_invoice)


__all__ = [
    "PURCHASE_STATUS_PAID",
    "PURCHASE_TYPE_BUNDLE",
    "PURCHASE_TYPE_GIFT",
    "PURCHASE_TYPE_MODULE",
    "PurchaseService",
]
