import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
from storefront.domain import Severity
from storefront.notifications import NotificationCenter


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def center(clock):
    return NotificationCenter(ttl=3, clock=clock)


def test_notify_assigns_sequential_ids(center):
    center.notify("a")
    center.notify("b", Severity.ERROR)
    items = center.active()
    assert [n.id for n in items] == ["1", "2"]
    assert items[0].severity is Severity.SUCCESS
    assert items[1].severity is Severity.ERROR


def test_each_notification_has_its_own_lifetime(center, clock):
    """Новое уведомление не продлевает жизнь старому"""
    center.notify("старое")
    clock.now += 2
    center.notify("новое")

    clock.now += 1
    assert [n.message for n in center.active()] == ["новое"]

    clock.now += 2
    assert center.active() == ()


def test_dismiss(center):
    center.notify("a")
    center.notify("b")
    center.dismiss("1")
    assert [n.message for n in center.active()] == ["b"]
    center.dismiss("missing")
    assert len(center.active()) == 1
