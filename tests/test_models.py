# -*- coding: utf-8 -*-
"""
Tests de las entidades y utilidades de formato.
"""
import pytest

from zona_botin.models import CartItem, Order, OrderStatus, format_ars, status_label


@pytest.mark.parametrize('amount,expected', [
    (31000, '31.000'),
    (1234.5, '1.234,50'),
    (0, '0'),
    (None, '0'),
])
def test_format_ars(amount, expected):
    assert format_ars(amount) == expected


def test_status_label():
    assert status_label('shipped') == 'Enviado'
    assert status_label('otra-cosa') == 'Pendiente'
    assert status_label(None) == 'Pendiente'


def test_cart_item_key_and_subtotal():
    item = CartItem(product={'id': 'p1', 'precio': '1500'}, qty=3, talle='41')

    assert item.key == 'p1-41'
    assert item.subtotal == 4500.0
    assert CartItem.from_dict(item.to_dict()) == item


def test_order_defaults():
    order = Order(
        id='abcdef1234567890', buyer_name='Ana García', email='ana@mail.com', phone='1',
        dni='2', address='Calle 1', city='Rosario', province='Santa Fe', postal_code='2000',
        status=OrderStatus.APPROVED,
    )

    assert order.short_id == 'ABCDEF12'
    assert order.status == 'approved'
    assert order.created_at
    assert not order.read_by_admin
