# ==============================================================================
# REPOSITORIO DE PEDIDOS
# ==============================================================================
# Encapsula todo el acceso a orders.json y la suscripción en vivo sobre los
# pedidos más recientes que usa el feed de notificaciones del admin.
# ==============================================================================

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from zona_botin.repositories.base import CollectionRepository
from zona_botin.repositories.interfaces import Snapshot

logger = logging.getLogger(__name__)


class OrderRepository(CollectionRepository):
    """
    Repositorio de pedidos.

    Formato de datos en orders.json:
    {
        "f9e8d7...": {
            "buyer_name": "Juan García",
            "items": [{"product": {...}, "qty": 1, "talle": "40"}],
            "total": 15000,
            "status": "pending",
            "read_by_admin": false,
            "created_at": "2024-05-01T12:00:00+00:00",
            ...
        }
    }

    Suscripciones: cada callback recibe una foto de los `limit` pedidos más
    recientes al suscribirse y luego después de cada escritura.
    """

    collection_name = 'orders'

    def __init__(self, base_path: str):
        super().__init__(base_path)
        self._listeners: Dict[int, tuple] = {}
        self._listeners_lock = threading.Lock()
        self._next_token = 0

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Pedidos más recientes primero.

        Args:
            limit: Máximo a devolver (None = todos)
        """
        return self.query(order_by='created_at', descending=True, limit=limit)

    def find_by_idempotency_key(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Busca el pedido creado con una clave de idempotencia.

        Args:
            key: Token generado por el cliente

        Returns:
            Pedido o None
        """
        if not key:
            return None
        found = self.query(where=lambda o: o.get('idempotency_key') == key, limit=1)
        return found[0] if found else None

    # =========================================================================
    # SUSCRIPCIONES EN VIVO
    # =========================================================================

    def subscribe(
        self,
        callback: Callable[[Snapshot], None],
        limit: int = 20
    ) -> Callable[[], None]:
        """
        Suscribe un callback a los pedidos más recientes.

        Args:
            callback: Recibe la lista de pedidos (más nuevos primero)
            limit: Cantidad de pedidos de cada foto

        Returns:
            Función sin argumentos que cancela la suscripción
        """
        with self._listeners_lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = (callback, limit)

        self._deliver(callback, limit)

        def unsubscribe() -> None:
            with self._listeners_lock:
                self._listeners.pop(token, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._listeners_lock:
            return len(self._listeners)

    def _deliver(self, callback: Callable[[Snapshot], None], limit: int) -> None:
        try:
            callback(self.recent(limit))
        except Exception:
            # Un listener roto no debe romper la escritura que lo disparó
            logger.exception("Error entregando foto de pedidos a un listener")

    def _after_write(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners.values())
        for callback, limit in listeners:
            self._deliver(callback, limit)
