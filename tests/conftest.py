# -*- coding: utf-8 -*-
"""
Fixtures compartidas: datos en tmp_path, gateways falsos y cliente Flask.
"""
import pytest

from zona_botin.config import Settings
from zona_botin.errors import ConfigurationError, IntegrationError
from zona_botin.main import create_app
from zona_botin.models import Product
from zona_botin.repositories import OrderRepository, ProductRepository, UserRepository

ADMIN_EMAIL = 'admin@zonabotin.com.ar'


class FakePaymentGateway:
    """Doble de MercadoPagoGateway que no sale a la red."""

    def __init__(self, configured=True):
        self.configured = configured
        self.fail = False
        self.preferences = []
        self.payments = {}

    def create_preference(self, order_id, items, payer):
        if not self.configured:
            raise ConfigurationError('MP_ACCESS_TOKEN', 'Token de MercadoPago no configurado')
        if self.fail:
            raise IntegrationError('mercadopago', 'MercadoPago respondió 500')
        self.preferences.append({'order_id': order_id, 'items': items, 'payer': payer})
        return {
            'id': f'pref-{len(self.preferences)}',
            'init_point': f'https://www.mercadopago.com.ar/checkout/v1/redirect?pref_id=pref-{len(self.preferences)}',
        }

    def get_payment(self, payment_id):
        if payment_id not in self.payments:
            raise IntegrationError('mercadopago', 'MercadoPago respondió 404')
        return self.payments[payment_id]


class FakeUploader:
    """Doble de CloudinaryUploader; falla para los nombres en fail_on."""

    def __init__(self):
        self.fail_on = set()
        self.uploaded = []

    def upload(self, image):
        if image.filename in self.fail_on:
            raise IntegrationError('cloudinary', 'Error al subir imagen a Cloudinary')
        self.uploaded.append(image.filename)
        n = len(self.uploaded)
        return {
            'url': f'https://res.cloudinary.com/demo/image/upload/{image.filename}',
            'public_id': f'zona-botin/products/img{n}',
        }


BUYER_FORM = {
    'nombre': 'Juan',
    'apellido': 'García',
    'email': 'juan@mail.com',
    'telefono': '1155550000',
    'dni': '30111222',
    'direccion': 'Av. Siempreviva 742',
    'ciudad': 'Rosario',
    'provincia': 'Santa Fe',
    'codigo_postal': '2000',
}


def make_product(repo, titulo='Nike Mercurial', precio=10000, marca='Nike', cantidad=5,
                 created_at='2024-05-01T12:00:00+00:00'):
    product = Product(
        id=None,
        titulo=titulo,
        precio=precio,
        marca=marca,
        cantidad=cantidad,
        talles=['40', '41', '42'],
        imagenes=['https://res.cloudinary.com/demo/a.jpg'],
        imagenes_public_ids=['zona-botin/products/a'],
        created_at=created_at,
    )
    product_id = repo.add(product.to_dict())
    return repo.get(product_id)


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / 'data')


@pytest.fixture
def settings(data_dir):
    return Settings(
        secret_key='test-secret',
        admin_email=ADMIN_EMAIL,
        mp_access_token='TEST-123',
        base_url='https://tienda.test',
        data_dir=data_dir,
        enable_profiling=False,
    )


@pytest.fixture
def product_repo(data_dir):
    return ProductRepository(data_dir)


@pytest.fixture
def order_repo(data_dir):
    return OrderRepository(data_dir)


@pytest.fixture
def user_repo(data_dir):
    return UserRepository(data_dir)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def app(settings, gateway, uploader):
    app = create_app(settings, payment_gateway=gateway, image_uploader=uploader)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def container(app):
    return app.extensions['zona_botin']


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def csrf(client):
    r = client.get('/api/csrf')
    assert r.status_code == 200
    return r.get_json()['csrf_token']


def register(client, email='juan@mail.com', password='secreto1'):
    token = csrf(client)
    body = {
        'email': email,
        'password': password,
        'confirm_password': password,
        'nombre': 'Juan',
        'apellido': 'García',
        'telefono': '1155550000',
        'dni': '30111222',
        'direccion': 'Av. Siempreviva 742',
        'ciudad': 'Rosario',
        'provincia': 'Santa Fe',
        'codigo_postal': '2000',
    }
    r = client.post('/api/auth/registro', json=body, headers={'X-CSRF-Token': token})
    assert r.status_code == 201, r.get_json()
    return token


def login_admin(client):
    return register(client, email=ADMIN_EMAIL)
