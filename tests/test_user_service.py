# -*- coding: utf-8 -*-
"""
Tests de cuentas: registro, login, perfil y permisos de admin.
"""
import pytest

from conftest import ADMIN_EMAIL
from zona_botin.errors import AuthError, NotFoundError, ValidationError
from zona_botin.services import UserService

FORM = {
    'email': 'juan@mail.com',
    'password': 'secreto1',
    'confirm_password': 'secreto1',
    'nombre': 'Juan',
    'apellido': 'García',
    'telefono': '1155550000',
    'dni': '30111222',
    'direccion': 'Av. Siempreviva 742',
    'ciudad': 'Rosario',
    'provincia': 'Santa Fe',
    'codigo_postal': '2000',
}


@pytest.fixture
def users(user_repo):
    return UserService(user_repo, admin_email=ADMIN_EMAIL)


def test_register_hashes_password(users, user_repo):
    user = users.register(FORM)

    stored = user_repo.get(user['uid'])
    assert stored['password'] != 'secreto1'
    assert stored['role'] == 'user'
    assert 'password' not in user


@pytest.mark.parametrize('changes,message', [
    ({'email': 'no-es-un-email'}, 'Ingresá un email válido'),
    ({'password': '123', 'confirm_password': '123'}, 'La contraseña debe tener al menos 6 caracteres'),
    ({'confirm_password': 'otra-cosa'}, 'Las contraseñas no coinciden'),
    ({'dni': ''}, 'Completá todos los campos'),
    ({'provincia': 'Narnia'}, 'Seleccioná tu provincia'),
])
def test_register_validation(users, changes, message):
    with pytest.raises(ValidationError) as exc:
        users.register(dict(FORM, **changes))

    assert exc.value.message == message


def test_duplicate_email_is_rejected(users):
    users.register(FORM)

    with pytest.raises(ValidationError) as exc:
        users.register(dict(FORM, email='JUAN@mail.com'))

    assert exc.value.message == 'Ya existe una cuenta con ese email'


def test_admin_email_registers_as_admin(users):
    user = users.register(dict(FORM, email=ADMIN_EMAIL))

    assert user['role'] == 'admin'
    assert users.is_admin(user)


def test_authenticate(users):
    users.register(FORM)

    user = users.authenticate('juan@mail.com', 'secreto1')
    assert user['email'] == 'juan@mail.com'

    with pytest.raises(AuthError):
        users.authenticate('juan@mail.com', 'incorrecta')
    with pytest.raises(AuthError):
        users.authenticate('nadie@mail.com', 'secreto1')


def test_is_admin_by_role_or_configured_email(users):
    assert users.is_admin({'role': 'admin', 'email': 'otro@mail.com'})
    assert users.is_admin({'role': 'user', 'email': ADMIN_EMAIL.upper()})
    assert not users.is_admin({'role': 'user', 'email': 'juan@mail.com'})
    assert not users.is_admin(None)


def test_without_configured_email_only_role_counts(user_repo):
    users = UserService(user_repo, admin_email=None)

    assert not users.is_admin({'role': 'user', 'email': ''})
    assert users.is_admin({'role': 'admin', 'email': ''})


def test_update_profile_only_touches_profile_fields(users, user_repo):
    user = users.register(FORM)

    updated = users.update_profile(user['uid'], {'ciudad': 'Córdoba', 'role': 'admin', 'email': 'x@y.z'})

    assert updated['ciudad'] == 'Córdoba'
    assert updated['role'] == 'user'
    assert updated['email'] == 'juan@mail.com'


def test_get_missing_user(users):
    with pytest.raises(NotFoundError):
        users.get_user('no-existe')
    with pytest.raises(NotFoundError):
        users.update_profile('no-existe', {'ciudad': 'x'})


def test_update_profile_rejects_unknown_province(users):
    user = users.register(FORM)

    with pytest.raises(ValidationError):
        users.update_profile(user['uid'], {'provincia': 'Narnia'})
