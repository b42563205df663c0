from academy.workers.celery_app import celery_app
from academy.workers.tasks import notifications


def test_deliver_notifications_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, int]:
        return {"picked": 4, "sent": 3, "retry": 1, "failed": 0}

    monkeypatch.setattr(notifications, "deliver_notifications_async", fake_async)

    result = notifications.deliver_notifications()
    assert result["sent"] == 3
    assert result["retry"] == 1


def test_notifications_delivery_is_scheduled() -> None:
    entry = celery_app.conf.beat_schedule["notifications-delivery"]
    assert entry["task"] == "academy.workers.tasks.notifications.deliver_notifications"
    assert entry["schedule"] == 30.0
