# ==============================================================================
# SERVICIO DE NOTIFICACIONES (ADMIN)
# ==============================================================================
# Feed en vivo de pedidos para la barra del admin.
#
# Cada sesión de admin tiene su propio feed suscripto a los últimos N pedidos.
# La primera foto solo "memoriza" los IDs existentes; a partir de ahí cada
# pedido nuevo en estado 'pending' genera un aviso (toast) una sola vez.
#
#   UNINITIALIZED ──primera foto──► PRIMED ──fotos siguientes──► PRIMED
# ==============================================================================

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from zona_botin.models import OrderStatus, format_ars
from zona_botin.repositories import OrderRepository
from zona_botin.repositories.interfaces import Snapshot

logger = logging.getLogger(__name__)

# Igual a la vida de la sesión de Flask por defecto (24 horas)
DEFAULT_IDLE_TIMEOUT = 24 * 60 * 60


class FeedState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PRIMED = "primed"


def toast_message(order: Dict[str, Any]) -> str:
    buyer = order.get('buyer_name') or 'un cliente'
    return f"🛒 Nueva venta de {buyer} - ${format_ars(order.get('total') or 0)}"


class NotificationFeed:
    """
    Estado del feed de una sesión.

    Attributes:
        state: UNINITIALIZED hasta recibir la primera foto
        notifications: Última foto recibida (más nuevos primero)
    """

    def __init__(self):
        self.state = FeedState.UNINITIALIZED
        self.notifications: List[Dict[str, Any]] = []
        self._seen: Set[str] = set()
        self._toasts: List[Dict[str, Any]] = []
        self._lock = threading.RLock()

    def on_snapshot(self, orders: Snapshot) -> None:
        """Procesa una foto de los pedidos más recientes."""
        with self._lock:
            if self.state == FeedState.PRIMED:
                for order in orders:
                    if order['id'] in self._seen:
                        continue
                    if order.get('status') == OrderStatus.PENDING.value:
                        self._toasts.append({
                            'order_id': order['id'],
                            'message': toast_message(order),
                        })
            self._seen.update(o['id'] for o in orders)
            self.notifications = list(orders)
            self.state = FeedState.PRIMED

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for o in self.notifications if not o.get('read_by_admin'))

    def unread_ids(self) -> List[str]:
        with self._lock:
            return [o['id'] for o in self.notifications if not o.get('read_by_admin')]

    def drain_toasts(self) -> List[Dict[str, Any]]:
        """Devuelve y descarta los avisos pendientes."""
        with self._lock:
            toasts, self._toasts = self._toasts, []
            return toasts


class NotificationService:
    """
    Administra un feed por sesión de admin.

    Uso:
        service.start(session_id)      # al iniciar sesión
        service.poll(session_id)       # cada vez que la barra pide novedades
        service.open_panel(session_id) # al abrir el panel
        service.stop(session_id)       # al cerrar sesión

    Una sesión que vence sin logout deja de consultar; su feed se da de baja
    en el siguiente start() una vez pasado idle_timeout sin actividad.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        limit: int = 20,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            order_repo: Repositorio de pedidos (fuente de las fotos)
            limit: Pedidos por foto
            idle_timeout: Segundos sin consultas tras los que se libera el feed
            clock: Reloj en segundos (tests)
        """
        self.order_repo = order_repo
        self.limit = limit
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._feeds: Dict[str, NotificationFeed] = {}
        self._unsubscribers: Dict[str, Callable[[], None]] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def start(self, session_id: str) -> NotificationFeed:
        """Crea (o devuelve) el feed de la sesión y lo suscribe."""
        self.reap_idle()
        with self._lock:
            self._last_seen[session_id] = self._clock()
            feed = self._feeds.get(session_id)
            if feed is not None:
                return feed

            # Feed y suscripción se registran juntos: un stop() concurrente
            # siempre encuentra con qué desuscribir
            feed = NotificationFeed()
            self._unsubscribers[session_id] = self.order_repo.subscribe(feed.on_snapshot, limit=self.limit)
            self._feeds[session_id] = feed

        logger.info("Feed de notificaciones iniciado para la sesión %s", session_id[:8])
        return feed

    def stop(self, session_id: str) -> None:
        """Cancela la suscripción de la sesión."""
        with self._lock:
            self._feeds.pop(session_id, None)
            self._last_seen.pop(session_id, None)
            unsubscribe = self._unsubscribers.pop(session_id, None)
        if unsubscribe:
            unsubscribe()
            logger.info("Feed de notificaciones detenido para la sesión %s", session_id[:8])

    def reap_idle(self) -> List[str]:
        """
        Da de baja los feeds sin consultas durante más de idle_timeout.

        Returns:
            IDs de sesión liberados
        """
        cutoff = self._clock() - self.idle_timeout
        with self._lock:
            idle = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in idle:
            self.stop(session_id)
        if idle:
            logger.info("Feeds inactivos liberados: %s", len(idle))
        return idle

    @property
    def active_sessions(self) -> int:
        with self._lock:
            return len(self._feeds)

    def get_feed(self, session_id: str) -> Optional[NotificationFeed]:
        with self._lock:
            return self._feeds.get(session_id)

    def poll(self, session_id: str) -> Dict[str, Any]:
        """
        Estado del feed para la barra del admin.

        Returns:
            Dict con notifications, unread_count y toasts (ya descartados)
        """
        feed = self.start(session_id)
        return {
            'notifications': feed.notifications,
            'unread_count': feed.unread_count,
            'toasts': feed.drain_toasts(),
        }

    def open_panel(self, session_id: str) -> int:
        """
        Marca como leídos los pedidos no leídos visibles en el feed.

        Returns:
            Cantidad de pedidos marcados
        """
        feed = self.start(session_id)
        ids = feed.unread_ids()
        for order_id in ids:
            self.order_repo.update(order_id, {'read_by_admin': True})
        return len(ids)
