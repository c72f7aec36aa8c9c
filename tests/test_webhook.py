# -*- coding: utf-8 -*-
"""
Tests del webhook de pagos: siempre acusa recibo y actualiza el pedido
con el estado que informa la pasarela.
"""
import pytest

from conftest import FakePaymentGateway
from zona_botin.models import Order
from zona_botin.services import WebhookService
from zona_botin.services.webhook_service import ACK, ACK_NOT_CONFIGURED


@pytest.fixture
def order_id(order_repo):
    order = Order(id=None, buyer_name='Juan García', email='juan@mail.com', phone='1',
                  dni='2', address='x', city='y', province='z', postal_code='2000', total=31000)
    return order_repo.add(order.to_dict())


@pytest.fixture
def webhook(order_repo, gateway):
    return WebhookService(order_repo, gateway)


def notification(payment_id='987'):
    return {'type': 'payment', 'data': {'id': payment_id}}


def test_payment_updates_order(webhook, order_repo, gateway, order_id):
    gateway.payments['987'] = {'status': 'approved', 'external_reference': order_id}

    assert webhook.handle_notification(notification()) == ACK

    order = order_repo.get(order_id)
    assert order['status'] == 'approved'
    assert order['payment_id'] == '987'


def test_numeric_payment_id_is_stored_as_string(webhook, order_repo, gateway, order_id):
    gateway.payments['555'] = {'status': 'approved', 'external_reference': order_id}

    webhook.handle_notification(notification(555))

    assert order_repo.get(order_id)['payment_id'] == '555'


def test_replay_is_idempotent(webhook, order_repo, gateway, order_id):
    gateway.payments['987'] = {'status': 'approved', 'external_reference': order_id}

    webhook.handle_notification(notification())
    once = order_repo.get(order_id)
    webhook.handle_notification(notification())
    twice = order_repo.get(order_id)

    assert (twice['status'], twice['payment_id']) == (once['status'], once['payment_id'])


def test_gateway_status_is_written_verbatim(webhook, order_repo, gateway, order_id):
    gateway.payments['987'] = {'status': 'rejected', 'external_reference': order_id}

    webhook.handle_notification(notification())

    assert order_repo.get(order_id)['status'] == 'rejected'


@pytest.mark.parametrize('payload', [
    None,
    'texto',
    {},
    {'type': 'merchant_order', 'data': {'id': '1'}},
    {'type': 'payment'},
    {'type': 'payment', 'data': {}},
])
def test_ignored_payloads_are_acknowledged(webhook, gateway, payload):
    assert webhook.handle_notification(payload) == ACK


def test_missing_token_is_acknowledged_with_note(order_repo, order_id):
    webhook = WebhookService(order_repo, FakePaymentGateway(configured=False))

    assert webhook.handle_notification(notification()) == ACK_NOT_CONFIGURED
    assert order_repo.get(order_id)['status'] == 'pending'


def test_gateway_error_is_swallowed(webhook, order_repo, order_id):
    # El pago no existe en la pasarela → IntegrationError interno
    assert webhook.handle_notification(notification('no-existe')) == ACK
    assert order_repo.get(order_id)['status'] == 'pending'


def test_unknown_order_is_ignored(webhook, order_repo, gateway, order_id):
    gateway.payments['987'] = {'status': 'approved', 'external_reference': 'otro-pedido'}

    assert webhook.handle_notification(notification()) == ACK
    assert order_repo.count() == 1
    assert order_repo.get('otro-pedido') is None
