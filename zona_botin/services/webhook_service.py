# ==============================================================================
# SERVICIO DE WEBHOOK DE PAGOS
# ==============================================================================
# MercadoPago avisa cambios de pago con {"type": "payment", "data": {"id"}}.
# Nunca se confía en el cuerpo: el pago se vuelve a consultar con el token
# privado y se copian su estado y su ID al pedido (external_reference).
#
# Siempre se responde "recibido", aun con errores internos, para que la
# pasarela no reintente en bucle. Los errores quedan en el log.
# ==============================================================================

import logging
from typing import Any, Dict, Optional

from zona_botin.gateways import MercadoPagoGateway
from zona_botin.models import utc_now_iso
from zona_botin.repositories import OrderRepository

logger = logging.getLogger(__name__)

ACK = {'received': True}
ACK_NOT_CONFIGURED = {'received': True, 'note': 'MP token not configured'}


class WebhookService:
    """
    Procesa notificaciones de la pasarela de pagos.

    Reprocesar la misma notificación vuelve a escribir el mismo estado,
    así que es idempotente en efecto.
    """

    def __init__(self, order_repo: OrderRepository, gateway: MercadoPagoGateway):
        self.order_repo = order_repo
        self.gateway = gateway

    def handle_notification(self, payload: Any) -> Dict[str, Any]:
        """
        Procesa una notificación.

        Args:
            payload: Cuerpo JSON recibido (puede ser cualquier cosa)

        Returns:
            Acuse de recibo para responder a la pasarela
        """
        try:
            return self._process(payload)
        except Exception:
            logger.exception("Error procesando webhook de pagos: %r", payload)
            return dict(ACK)

    def _process(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            logger.warning("Webhook ignorado: cuerpo inválido %r", payload)
            return dict(ACK)

        data = payload.get('data') or {}
        payment_id = data.get('id') if isinstance(data, dict) else None
        if payload.get('type') != 'payment' or not payment_id:
            return dict(ACK)

        if not self.gateway.configured:
            return dict(ACK_NOT_CONFIGURED)

        payment = self.gateway.get_payment(str(payment_id))
        order_id: Optional[str] = payment.get('external_reference')
        status: Optional[str] = payment.get('status')

        if not order_id:
            logger.info("Pago %s sin external_reference, nada que actualizar", payment_id)
            return dict(ACK)

        updated = self.order_repo.update(order_id, {
            'status': status,
            'payment_id': str(payment_id),
            'updated_at': utc_now_iso(),
        })
        if updated:
            logger.info("Pedido %s actualizado a '%s' (pago %s)", order_id, status, payment_id)
        else:
            logger.warning("Pago %s referencia un pedido inexistente: %s", payment_id, order_id)
        return dict(ACK)
