from __future__ import annotations

from collections.abc import Iterable

from academy.catalog.constants import KIND_BUNDLE, KIND_MODULE
from academy.catalog.errors import InvalidCourseKindError
from academy.db.models.courses import Course
from academy.pricing.types import UpgradeQuote


def _owned_modules_of(bundle: Course, owned_modules: Iterable[Course]) -> list[Course]:
    seen: set[int] = set()
    belonging: list[Course] = []
    for module in owned_modules:
        if module.kind != KIND_MODULE or module.parent_id != bundle.id:
            continue
        if module.id in seen:
            continue
        seen.add(module.id)
        belonging.append(module)
    return belonging


def quote_upgrade(bundle: Course, owned_modules: Iterable[Course]) -> UpgradeQuote:
    if bundle.kind != KIND_BUNDLE:
        raise InvalidCourseKindError(bundle.id, expected=KIND_BUNDLE, actual=bundle.kind)

    belonging = _owned_modules_of(bundle, owned_modules)
    owned_price_sum = sum(int(module.individual_price or 0) for module in belonging)
    bundle_price = int(bundle.bundle_price or 0)
    # Module prices may add up to more than the bundle price; never charge below zero.
    amount = max(0, bundle_price - owned_price_sum)
    return UpgradeQuote(
        bundle_id=bundle.id,
        bundle_price=bundle_price,
        owned_price_sum=owned_price_sum,
        owned_module_ids=tuple(sorted(module.id for module in belonging)),
        amount=amount,
    )


def compute_upgrade_cost(bundle: Course, owned_modules: Iterable[Course]) -> int:
    return quote_upgrade(bundle, owned_modules).amount


def compute_gift_cost(course: Course) -> int:
    if course.kind == KIND_BUNDLE:
        return int(course.bundle_price or 0)
    return int(course.individual_price or 0)
