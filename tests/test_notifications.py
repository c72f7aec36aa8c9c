# -*- coding: utf-8 -*-
"""
Tests del feed de notificaciones del admin.
"""
import pytest

from zona_botin.models import Order
from zona_botin.services import FeedState, NotificationFeed, NotificationService


def new_order(repo, buyer='Juan García', total=31000, status='pending'):
    order = Order(id=None, buyer_name=buyer, email='juan@mail.com', phone='1', dni='2',
                  address='x', city='y', province='z', postal_code='2000',
                  total=total, status=status)
    return repo.add(order.to_dict())


def test_first_snapshot_primes_without_toasts():
    feed = NotificationFeed()
    assert feed.state == FeedState.UNINITIALIZED

    feed.on_snapshot([{'id': 'a', 'status': 'pending', 'buyer_name': 'X', 'total': 1}])

    assert feed.state == FeedState.PRIMED
    assert feed.drain_toasts() == []


def test_empty_first_snapshot_also_primes():
    feed = NotificationFeed()
    feed.on_snapshot([])
    feed.on_snapshot([{'id': 'a', 'status': 'pending', 'buyer_name': 'Ana', 'total': 15000}])

    toasts = feed.drain_toasts()
    assert [t['message'] for t in toasts] == ['🛒 Nueva venta de Ana - $15.000']


def test_toasts_once_per_new_pending_order():
    feed = NotificationFeed()
    feed.on_snapshot([{'id': 'a', 'status': 'pending'}])

    snapshot = [
        {'id': 'b', 'status': 'pending', 'buyer_name': 'Ana', 'total': 1000},
        {'id': 'c', 'status': 'approved', 'buyer_name': 'Luis', 'total': 2000},
        {'id': 'a', 'status': 'pending'},
    ]
    feed.on_snapshot(snapshot)
    feed.on_snapshot(snapshot)

    assert [t['order_id'] for t in feed.drain_toasts()] == ['b']
    assert feed.drain_toasts() == []


def test_unread_count():
    feed = NotificationFeed()
    feed.on_snapshot([
        {'id': 'a', 'read_by_admin': False},
        {'id': 'b', 'read_by_admin': True},
        {'id': 'c'},
    ])

    assert feed.unread_count == 2


@pytest.fixture
def notifications(order_repo):
    return NotificationService(order_repo, limit=20)


def test_service_toasts_new_orders_after_start(notifications, order_repo):
    new_order(order_repo, buyer='Existente')
    notifications.start('sesion-1')

    order_id = new_order(order_repo, buyer='Nueva', total=31000)
    state = notifications.poll('sesion-1')

    assert state['toasts'] == [
        {'order_id': order_id, 'message': '🛒 Nueva venta de Nueva - $31.000'}
    ]
    assert state['unread_count'] == 2
    assert notifications.poll('sesion-1')['toasts'] == []


def test_open_panel_marks_visible_unread_as_read(notifications, order_repo):
    a = new_order(order_repo)
    b = new_order(order_repo)
    notifications.start('sesion-1')

    assert notifications.open_panel('sesion-1') == 2
    assert order_repo.get(a)['read_by_admin'] is True
    assert order_repo.get(b)['read_by_admin'] is True
    assert notifications.poll('sesion-1')['unread_count'] == 0


def test_feed_only_watches_the_limit(order_repo):
    service = NotificationService(order_repo, limit=2)
    for _ in range(3):
        new_order(order_repo)

    state = service.poll('sesion-1')

    assert len(state['notifications']) == 2


def test_stop_unsubscribes(notifications, order_repo):
    notifications.start('sesion-1')
    assert order_repo.listener_count == 1

    notifications.stop('sesion-1')

    assert order_repo.listener_count == 0
    assert notifications.get_feed('sesion-1') is None


def test_sessions_have_independent_feeds(notifications, order_repo):
    notifications.start('sesion-1')
    new_order(order_repo)
    notifications.start('sesion-2')

    assert len(notifications.poll('sesion-1')['toasts']) == 1
    assert notifications.poll('sesion-2')['toasts'] == []


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_idle_feeds_are_released(order_repo):
    clock = FakeClock()
    service = NotificationService(order_repo, idle_timeout=60, clock=clock)
    service.start('vencida')
    service.start('activa')
    assert order_repo.listener_count == 2

    clock.now += 45
    service.poll('activa')
    clock.now += 30

    assert service.reap_idle() == ['vencida']
    assert service.get_feed('vencida') is None
    assert service.get_feed('activa') is not None
    assert order_repo.listener_count == 1


def test_start_releases_feeds_of_expired_sessions(order_repo):
    clock = FakeClock()
    service = NotificationService(order_repo, idle_timeout=60, clock=clock)
    for n in range(5):
        service.start(f'sesion-{n}')

    clock.now += 61
    service.start('nueva')

    assert service.active_sessions == 1
    assert order_repo.listener_count == 1


def test_polling_keeps_a_feed_alive(order_repo):
    clock = FakeClock()
    service = NotificationService(order_repo, idle_timeout=60, clock=clock)
    service.start('sesion-1')

    for _ in range(5):
        clock.now += 50
        service.poll('sesion-1')

    assert service.reap_idle() == []
    assert order_repo.listener_count == 1
