from __future__ import annotations

from types import SimpleNamespace

import pytest

from academy.access import evaluator as evaluator_module
from academy.catalog.errors import LessonNotFoundError
from academy.access.evaluator import AccessEvaluator
from academy.profiles.plans import ANONYMOUS, Viewer

MODULE = SimpleNamespace(id=10, parent_id=1, kind="MODULE")


def _install_ledger(monkeypatch, *, module_grant: bool = False, bundle_grant: bool = False) -> list[str]:
    calls: list[str] = []

    async def _has_module_grant(session, **kwargs) -> bool:
        calls.append("module")
        return module_grant

    async def _has_bundle_grant(session, **kwargs) -> bool:
        calls.append("bundle")
        return bundle_grant

    async def _get_module(session, module_id):
        calls.append("catalog")
        return MODULE

    monkeypatch.setattr(evaluator_module.EntitlementLedger, "has_module_grant", staticmethod(_has_module_grant))
    monkeypatch.setattr(evaluator_module.EntitlementLedger, "has_bundle_grant", staticmethod(_has_bundle_grant))
    monkeypatch.setattr(evaluator_module.CatalogService, "get_module", staticmethod(_get_module))
    return calls


@pytest.mark.asyncio
async def test_pro_viewer_short_circuits_before_catalog_and_ledger_lookups(monkeypatch) -> None:
    calls = _install_ledger(monkeypatch)

    allowed = await AccessEvaluator.can_access_module(
        None,
        viewer=Viewer(user_id=7, plan="PRO"),
        module_id=MODULE.id,
    )

    assert allowed is True
    assert calls == []


@pytest.mark.asyncio
async def test_direct_module_grant_skips_bundle_lookup(monkeypatch) -> None:
    calls = _install_ledger(monkeypatch, module_grant=True)

    allowed = await AccessEvaluator.can_access_module(None, viewer=Viewer(user_id=7), module_id=MODULE.id)

    assert allowed is True
    assert calls == ["catalog", "module"]


@pytest.mark.asyncio
async def test_parent_bundle_grant_gives_access(monkeypatch) -> None:
    calls = _install_ledger(monkeypatch, bundle_grant=True)

    allowed = await AccessEvaluator.can_access_module(None, viewer=Viewer(user_id=7), module_id=MODULE.id)

    assert allowed is True
    assert calls == ["catalog", "module", "bundle"]


@pytest.mark.asyncio
async def test_free_viewer_without_grants_is_denied(monkeypatch) -> None:
    _install_ledger(monkeypatch)

    assert await AccessEvaluator.can_access_module(None, viewer=Viewer(user_id=7), module_id=MODULE.id) is False


@pytest.mark.asyncio
async def test_free_preview_lesson_needs_no_identity_or_ledger(monkeypatch) -> None:
    calls = _install_ledger(monkeypatch)
    lesson = SimpleNamespace(id=1, module_id=MODULE.id, is_free_preview=True)

    allowed = await AccessEvaluator.can_access_lesson(None, viewer=ANONYMOUS, lesson=lesson, module=MODULE)

    assert allowed is True
    assert calls == []


@pytest.mark.asyncio
async def test_anonymous_viewer_never_reaches_the_ledger_for_locked_lessons(monkeypatch) -> None:
    calls = _install_ledger(monkeypatch, module_grant=True)
    lesson = SimpleNamespace(id=2, module_id=MODULE.id, is_free_preview=False)

    allowed = await AccessEvaluator.can_access_lesson(None, viewer=ANONYMOUS, lesson=lesson, module=MODULE)

    assert allowed is False
    assert calls == []


@pytest.mark.asyncio
async def test_visible_lessons_filters_to_previews_in_order(monkeypatch) -> None:
    _install_ledger(monkeypatch)
    lessons = [
        SimpleNamespace(id=1, is_free_preview=False),
        SimpleNamespace(id=2, is_free_preview=True),
        SimpleNamespace(id=3, is_free_preview=True),
    ]

    async def _list_lessons(session, module_id):
        return lessons

    monkeypatch.setattr(evaluator_module.CatalogService, "list_lessons", staticmethod(_list_lessons))

    visible = await AccessEvaluator.visible_lessons(None, viewer=Viewer(user_id=7), module=MODULE)
    assert [lesson.id for lesson in visible] == [2, 3]

    pro_visible = await AccessEvaluator.visible_lessons(None, viewer=Viewer(user_id=7, plan="PRO"), module=MODULE)
    assert [lesson.id for lesson in pro_visible] == [1, 2, 3]


@pytest.mark.asyncio
async def test_locked_lesson_paired_with_another_module_is_refused(monkeypatch) -> None:
    calls = _install_ledger(monkeypatch, module_grant=True)
    foreign_lesson = SimpleNamespace(id=9, module_id=MODULE.id + 1, is_free_preview=False)

    with pytest.raises(LessonNotFoundError) as exc_info:
        await AccessEvaluator.can_access_lesson(
            None,
            viewer=Viewer(user_id=7, plan="PRO"),
            lesson=foreign_lesson,
            module=MODULE,
        )

    assert exc_info.value.module_id == MODULE.id
    assert calls == []
