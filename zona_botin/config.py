# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Todas las credenciales y URLs externas se leen del entorno una sola vez.
#
# Variables soportadas:
#   ZONA_SECRET_KEY           -> clave para firmar la cookie de sesión
#   ZONA_ADMIN_EMAIL          -> email con acceso de administrador
#   MP_ACCESS_TOKEN           -> token privado de MercadoPago
#   ZONA_BASE_URL             -> URL pública (callbacks y webhook)
#   CLOUDINARY_CLOUD_NAME     -> cuenta de Cloudinary
#   CLOUDINARY_UPLOAD_PRESET  -> preset de subida sin firma
#   ZONA_DATA_DIR             -> carpeta con las colecciones JSON
#   ZONA_NOTIFICATION_LIMIT   -> pedidos vigilados por el feed de admin
#   ZONA_SESSION_LIFETIME     -> segundos de vida de la sesión (y del feed de admin)
#   ZONA_HTTP_TIMEOUT         -> timeout (segundos) para servicios externos
#   ZONA_ENABLE_PROFILING     -> "0" desactiva los logs de rendimiento
#   ZONA_LOGS_DIR             -> carpeta de los logs de rendimiento
# ==============================================================================

import os
from dataclasses import dataclass, field, replace
from typing import Optional

BASE = os.path.dirname(os.path.abspath(__file__))

# Valor de ejemplo del .env que no es un token real
MP_TOKEN_PLACEHOLDER = 'TEST_PENDIENTE'

DEFAULT_SECRET = 'zona_botin_dev_secret_key_change_in_production'


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    """
    Configuración inmutable de la aplicación.

    Usar Settings.from_env() en producción; los tests construyen
    instancias directamente o con Settings.with_overrides().
    """
    secret_key: str = DEFAULT_SECRET
    admin_email: Optional[str] = None
    mp_access_token: Optional[str] = None
    base_url: str = 'http://localhost:5000'
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_upload_preset: Optional[str] = None
    data_dir: str = field(default_factory=lambda: os.path.join(BASE, 'data'))
    notification_limit: int = 20
    session_lifetime: int = 86400
    http_timeout: float = 15.0
    enable_profiling: bool = True
    logs_dir: Optional[str] = None
    currency: str = 'ARS'

    @classmethod
    def from_env(cls) -> 'Settings':
        """Construye la configuración desde os.environ."""
        return cls(
            secret_key=os.environ.get('ZONA_SECRET_KEY') or DEFAULT_SECRET,
            admin_email=os.environ.get('ZONA_ADMIN_EMAIL') or None,
            mp_access_token=os.environ.get('MP_ACCESS_TOKEN') or None,
            base_url=(os.environ.get('ZONA_BASE_URL') or 'http://localhost:5000').rstrip('/'),
            cloudinary_cloud_name=os.environ.get('CLOUDINARY_CLOUD_NAME') or None,
            cloudinary_upload_preset=os.environ.get('CLOUDINARY_UPLOAD_PRESET') or None,
            data_dir=os.environ.get('ZONA_DATA_DIR') or os.path.join(BASE, 'data'),
            notification_limit=_env_int('ZONA_NOTIFICATION_LIMIT', 20),
            session_lifetime=_env_int('ZONA_SESSION_LIFETIME', 86400),
            http_timeout=_env_float('ZONA_HTTP_TIMEOUT', 15.0),
            enable_profiling=os.environ.get('ZONA_ENABLE_PROFILING', '1') != '0',
            logs_dir=os.environ.get('ZONA_LOGS_DIR') or None,
        )

    def with_overrides(self, **changes) -> 'Settings':
        return replace(self, **changes)

    @property
    def payments_configured(self) -> bool:
        """True si hay un token de MercadoPago utilizable."""
        return bool(self.mp_access_token) and self.mp_access_token != MP_TOKEN_PLACEHOLDER

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET
