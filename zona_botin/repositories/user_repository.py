# ==============================================================================
# REPOSITORIO DE USUARIOS
# ==============================================================================
# Encapsula todo el acceso a users.json
# Los usuarios se guardan indexados por uid: {uid: {email, password, role, ...}}
# ==============================================================================

from typing import Any, Dict, Optional

from zona_botin.repositories.base import CollectionRepository


class UserRepository(CollectionRepository):
    """
    Repositorio de cuentas.

    Formato de datos en users.json:
    {
        "5f1e...": {"email": "juan@mail.com", "password": "scrypt:...", "role": "user", ...}
    }
    """

    collection_name = 'users'

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Obtiene un usuario por email.

        Args:
            email: Email (se compara sin distinguir mayúsculas)

        Returns:
            Datos del usuario o None
        """
        wanted = (email or '').strip().lower()
        if not wanted:
            return None
        found = self.query(where=lambda u: (u.get('email') or '').lower() == wanted, limit=1)
        return found[0] if found else None

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None
