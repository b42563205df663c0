from __future__ import annotations

PURCHASE_TYPE_MODULE = "MODULE"
PURCHASE_TYPE_BUNDLE = "BUNDLE"
PURCHASE_TYPE_GIFT = "GIFT"

PURCHASE_STATUS_PAID = "PAID"

INVOICE_NUMBER_PREFIX = "INV"
INVOICE_SUFFIX_LENGTH = 6
