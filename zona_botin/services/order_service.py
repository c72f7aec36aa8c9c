# ==============================================================================
# SERVICIO DE PEDIDOS (ADMIN)
# ==============================================================================
# Consulta y gestión de pedidos desde el panel de administración:
# listado con filtros, cambio de estado, marca de leído y resumen del panel.
#
# No se bloquea ninguna transición: el admin puede pasar un pedido a
# cualquier estado válido. Dos admins a la vez → gana la última escritura.
# ==============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from zona_botin.errors import NotFoundError, ValidationError
from zona_botin.models import OrderStatus, status_label, utc_now_iso
from zona_botin.repositories import OrderRepository, ProductRepository

logger = logging.getLogger(__name__)

# Filtro de estado que muestra todos los pedidos
ALL_STATUSES = 'all'

# Pedidos que muestra el panel principal
DASHBOARD_RECENT = 10


def matches_order_search(order: Dict[str, Any], search: Optional[str]) -> bool:
    """Busca en nombre y email (sin mayúsculas) y en el ID del pedido."""
    if not search:
        return True
    needle = search.lower()
    return (needle in (order.get('buyer_name') or '').lower()
            or needle in (order.get('email') or '').lower()
            or search in (order.get('id') or ''))


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class OrderService:
    """
    Servicio de pedidos para el admin.

    Responsabilidades:
    - Listar pedidos (más nuevos primero) con filtro de estado y búsqueda
    - Cambiar estado dentro de la enumeración permitida
    - Marcar leído / no leído
    - Resumen del panel y limpieza de checkouts huérfanos
    """

    VALID_STATUSES = frozenset(s.value for s in OrderStatus)

    def __init__(self, order_repo: OrderRepository, product_repo: ProductRepository = None):
        """
        Args:
            order_repo: Repositorio de pedidos
            product_repo: Repositorio de productos (para el resumen)
        """
        self.order_repo = order_repo
        self.product_repo = product_repo

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_orders(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Lista pedidos.

        Args:
            status: Estado exacto ('all' o None = todos)
            search: Texto sobre comprador, email o ID
            limit: Máximo de pedidos a leer del store

        Returns:
            Pedidos más nuevos primero
        """
        search = (search or '').strip()
        orders = self.order_repo.recent(limit)
        return [
            o for o in orders
            if (not status or status == ALL_STATUSES or o.get('status') == status)
            and matches_order_search(o, search)
        ]

    def get_order(self, order_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: Si el pedido no existe
        """
        order = self.order_repo.get(order_id)
        if not order:
            raise NotFoundError('orders', order_id, 'Pedido no encontrado')
        return order

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def set_status(self, order_id: str, status: str) -> Dict[str, Any]:
        """
        Cambia el estado de un pedido.

        Raises:
            ValidationError: Estado fuera de la enumeración
            NotFoundError: Pedido inexistente
        """
        if status not in self.VALID_STATUSES:
            raise ValidationError(f"Estado inválido: {status}")

        order = self.get_order(order_id)
        old_status = order.get('status')
        self.order_repo.update(order_id, {'status': status, 'updated_at': utc_now_iso()})
        logger.info("Pedido %s: %s → %s", order_id, old_status, status)

        order['status'] = status
        return order

    def mark_read(self, order_id: str, read: bool = True) -> None:
        """
        Marca un pedido como leído (o no leído) por el admin.

        Raises:
            NotFoundError: Pedido inexistente
        """
        if not self.order_repo.update(order_id, {'read_by_admin': bool(read)}):
            raise NotFoundError('orders', order_id, 'Pedido no encontrado')

    def reap_orphaned_checkouts(self, max_age: timedelta = timedelta(hours=24)) -> List[str]:
        """
        Cancela pedidos pendientes que nunca obtuvieron link de pago.

        Args:
            max_age: Antigüedad mínima para considerarlos abandonados

        Returns:
            IDs cancelados
        """
        cutoff = datetime.now(timezone.utc) - max_age
        orphans = self.order_repo.query(
            where=lambda o: o.get('status') == OrderStatus.PENDING.value
            and not o.get('init_point')
            and (_parse_ts(o.get('created_at')) or cutoff) < cutoff
        )
        reaped = []
        for order in orphans:
            self.order_repo.update(order['id'], {
                'status': OrderStatus.CANCELLED.value,
                'updated_at': utc_now_iso(),
            })
            reaped.append(order['id'])
        if reaped:
            logger.info("Cancelados %s pedidos huérfanos: %s", len(reaped), ', '.join(reaped))
        return reaped

    # =========================================================================
    # PANEL
    # =========================================================================

    def dashboard_summary(self) -> Dict[str, Any]:
        """
        Datos del panel principal.

        Returns:
            Dict con products, orders, revenue, pending_orders, recent_orders
        """
        recent = self.order_repo.recent(DASHBOARD_RECENT)
        revenue = sum(o.get('total') or 0 for o in recent
                      if o.get('status') == OrderStatus.APPROVED.value)
        pending = sum(1 for o in recent if o.get('status') == OrderStatus.PENDING.value)
        return {
            'products': self.product_repo.count() if self.product_repo else 0,
            'orders': len(recent),
            'revenue': revenue,
            'pending_orders': pending,
            'recent_orders': [
                {**o, 'status_label': status_label(o.get('status'))} for o in recent
            ],
        }
