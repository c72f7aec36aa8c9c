# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Registro, inicio de sesión y perfil de los compradores.
#
# REGLA DE ADMINISTRADOR:
# Un usuario es admin si su rol guardado es 'admin' O si su email coincide
# con ZONA_ADMIN_EMAIL. Se calcula UNA vez al iniciar sesión (is_admin) y se
# guarda en la sesión; todas las rutas de admin consultan ese valor.
# ==============================================================================

import logging
import re
from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from zona_botin.errors import AuthError, NotFoundError, ValidationError
from zona_botin.models import PROVINCIAS, User, UserRole
from zona_botin.repositories import UserRepository

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MIN_PASSWORD_LENGTH = 6


class UserService:
    """
    Servicio para gestión de cuentas.

    Responsabilidades:
    - Registro en dos pasos (credenciales + datos de envío)
    - Autenticación con hash werkzeug
    - Actualización de perfil
    - Decidir quién es administrador
    """

    def __init__(self, user_repo: UserRepository, admin_email: Optional[str] = None):
        """
        Args:
            user_repo: Repositorio de usuarios
            admin_email: Email configurado con permisos de admin
        """
        self.user_repo = user_repo
        self.admin_email = (admin_email or '').strip().lower() or None

    # =========================================================================
    # PERMISOS
    # =========================================================================

    def is_admin(self, user: Optional[Dict[str, Any]]) -> bool:
        """
        True si el usuario es administrador.

        Args:
            user: Datos del usuario (dict con role y email)
        """
        if not user:
            return False
        if user.get('role') == UserRole.ADMIN.value:
            return True
        email = (user.get('email') or '').strip().lower()
        return bool(self.admin_email) and email == self.admin_email

    # =========================================================================
    # REGISTRO
    # =========================================================================

    def validate_credentials(self, email: str, password: str, confirm: str) -> None:
        """
        Paso 1 del registro.

        Raises:
            ValidationError: Email inválido, contraseña corta o distinta
        """
        if not EMAIL_RE.match(email or ''):
            raise ValidationError('Ingresá un email válido')
        if len(password or '') < MIN_PASSWORD_LENGTH:
            raise ValidationError('La contraseña debe tener al menos 6 caracteres')
        if password != confirm:
            raise ValidationError('Las contraseñas no coinciden')

    def register(self, form: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea una cuenta.

        Args:
            form: email, password, confirm_password y los campos de perfil

        Returns:
            Usuario creado (sin hash)

        Raises:
            ValidationError: Datos inválidos o email ya registrado
        """
        email = str(form.get('email') or '').strip()
        password = str(form.get('password') or '')
        self.validate_credentials(email, password, str(form.get('confirm_password') or ''))

        profile = {name: str(form.get(name) or '').strip() for name in User.PROFILE_FIELDS}
        if not all(profile.values()):
            raise ValidationError('Completá todos los campos')
        if profile['provincia'] not in PROVINCIAS:
            raise ValidationError('Seleccioná tu provincia')

        if self.user_repo.email_exists(email):
            raise ValidationError('Ya existe una cuenta con ese email')

        role = UserRole.ADMIN if self.admin_email and email.lower() == self.admin_email else UserRole.USER
        uid = self.user_repo.new_id()
        user = User(
            uid=uid,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            **profile
        )
        self.user_repo.set(uid, user.to_dict())
        logger.info("Usuario registrado: %s (%s)", email, role.value)
        return user.public_dict()

    # =========================================================================
    # AUTENTICACIÓN
    # =========================================================================

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """
        Autentica un usuario.

        Returns:
            Datos del usuario (sin hash)

        Raises:
            AuthError: Email o contraseña incorrectos
        """
        data = self.user_repo.get_by_email(email)
        if not data or not check_password_hash(data.get('password', ''), password or ''):
            logger.warning("Inicio de sesión fallido para %s", email)
            raise AuthError('Email o contraseña incorrectos')
        return User.from_dict(data).public_dict()

    # =========================================================================
    # PERFIL
    # =========================================================================

    def get_user(self, uid: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: Usuario inexistente
        """
        data = self.user_repo.get(uid)
        if not data:
            raise NotFoundError('users', uid, 'Usuario no encontrado')
        return User.from_dict(data).public_dict()

    def update_profile(self, uid: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza los campos de perfil presentes en data.

        Email, rol y contraseña no se modifican por esta vía.
        """
        fields = {
            name: str(data[name]).strip()
            for name in User.PROFILE_FIELDS if name in data and data[name] is not None
        }
        if 'provincia' in fields and fields['provincia'] not in PROVINCIAS:
            raise ValidationError('Seleccioná tu provincia')
        if not self.user_repo.update(uid, fields):
            raise NotFoundError('users', uid, 'Usuario no encontrado')
        return self.get_user(uid)
