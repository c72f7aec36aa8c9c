# -*- coding: utf-8 -*-
"""
Tests de las colecciones JSON y la suscripción de pedidos.
"""
import json
import os

from zona_botin.repositories import (
    IOrderRepository,
    IProductRepository,
    IUserRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)


def test_repositories_implement_interfaces(product_repo, order_repo, user_repo):
    assert isinstance(product_repo, IProductRepository)
    assert isinstance(order_repo, IOrderRepository)
    assert isinstance(user_repo, IUserRepository)


def test_add_get_update_delete(product_repo, data_dir):
    doc_id = product_repo.add({'titulo': 'Nike Mercurial', 'precio': 10000})

    assert len(doc_id) == 20
    assert product_repo.get(doc_id) == {'id': doc_id, 'titulo': 'Nike Mercurial', 'precio': 10000}
    assert product_repo.update(doc_id, {'precio': 12000})
    assert product_repo.get(doc_id)['precio'] == 12000
    assert not product_repo.update('no-existe', {'precio': 1})

    removed = product_repo.delete(doc_id)
    assert removed['titulo'] == 'Nike Mercurial'
    assert product_repo.get(doc_id) is None
    assert product_repo.delete(doc_id) is None

    with open(os.path.join(data_dir, 'products.json'), encoding='utf-8') as f:
        assert json.load(f) == {}


def test_set_with_merge(user_repo):
    user_repo.set('u1', {'email': 'a@b.c', 'nombre': 'Ana'})
    user_repo.set('u1', {'nombre': 'Ana María'}, merge=True)
    assert user_repo.get('u1') == {'id': 'u1', 'email': 'a@b.c', 'nombre': 'Ana María'}

    user_repo.set('u1', {'nombre': 'Sola'})
    assert user_repo.get('u1') == {'id': 'u1', 'nombre': 'Sola'}


def test_query_order_and_limit(product_repo):
    product_repo.add({'titulo': 'b', 'created_at': '2024-05-02'})
    product_repo.add({'titulo': 'sin fecha'})
    product_repo.add({'titulo': 'c', 'created_at': '2024-05-03'})
    product_repo.add({'titulo': 'a', 'created_at': '2024-05-01'})

    newest = product_repo.list_newest_first()
    assert [p['titulo'] for p in newest] == ['c', 'b', 'a', 'sin fecha']

    oldest = product_repo.query(order_by='created_at', limit=2)
    assert [p['titulo'] for p in oldest] == ['a', 'b']

    only_b = product_repo.query(where=lambda p: p['titulo'] == 'b')
    assert len(only_b) == 1


def test_data_survives_a_new_instance(data_dir):
    doc_id = ProductRepository(data_dir).add({'titulo': 'Persistente'})

    assert ProductRepository(data_dir).get(doc_id)['titulo'] == 'Persistente'


def test_corrupt_file_reads_as_empty(data_dir):
    repo = ProductRepository(data_dir)
    with open(repo.file_path, 'w', encoding='utf-8') as f:
        f.write('{no es json')

    assert repo.count() == 0


def test_user_lookup_by_email_is_case_insensitive(user_repo):
    user_repo.set('u1', {'email': 'Juan@Mail.com'})

    assert user_repo.get_by_email('juan@mail.COM')['id'] == 'u1'
    assert user_repo.email_exists('JUAN@MAIL.COM')
    assert user_repo.get_by_email('') is None


def test_find_by_idempotency_key(order_repo):
    order_id = order_repo.add({'idempotency_key': 'k-1'})

    assert order_repo.find_by_idempotency_key('k-1')['id'] == order_id
    assert order_repo.find_by_idempotency_key('k-2') is None
    assert order_repo.find_by_idempotency_key(None) is None


def test_subscribe_delivers_initial_and_later_snapshots(order_repo):
    order_repo.add({'buyer_name': 'Primero', 'created_at': '2024-05-01'})
    snapshots = []

    unsubscribe = order_repo.subscribe(snapshots.append, limit=1)
    order_repo.add({'buyer_name': 'Segundo', 'created_at': '2024-05-02'})
    unsubscribe()
    order_repo.add({'buyer_name': 'Tercero', 'created_at': '2024-05-03'})

    assert [[o['buyer_name'] for o in s] for s in snapshots] == [['Primero'], ['Segundo']]
    assert order_repo.listener_count == 0


def test_broken_listener_does_not_break_writes(data_dir):
    repo = OrderRepository(data_dir)
    calls = []

    def broken(snapshot):
        calls.append(len(snapshot))
        if len(calls) > 1:
            raise RuntimeError('listener roto')

    repo.subscribe(broken)
    order_id = repo.add({'buyer_name': 'Ana'})

    assert repo.get(order_id)['buyer_name'] == 'Ana'
    assert calls == [0, 1]


def test_collections_live_in_separate_files(data_dir):
    ProductRepository(data_dir)
    OrderRepository(data_dir)
    UserRepository(data_dir)

    assert sorted(os.listdir(data_dir)) == ['orders.json', 'products.json', 'users.json']
