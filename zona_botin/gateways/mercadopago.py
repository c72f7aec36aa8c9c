# ==============================================================================
# CLIENTE DE MERCADOPAGO
# ==============================================================================
# Dos llamadas servidor-a-servidor con el token privado:
#   - POST /checkout/preferences  → crea la preferencia de pago
#   - GET  /v1/payments/<id>      → estado real de un pago (fuente de verdad)
# Los errores de red o respuestas no-2xx se convierten en IntegrationError.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

import requests

from zona_botin.config import MP_TOKEN_PLACEHOLDER
from zona_botin.errors import ConfigurationError, IntegrationError

logger = logging.getLogger(__name__)

API_URL = 'https://api.mercadopago.com'
STATEMENT_DESCRIPTOR = 'ZONA BOTIN'


class MercadoPagoGateway:
    """
    Cliente HTTP mínimo de la API de MercadoPago.

    Uso:
        gateway = MercadoPagoGateway(token, base_url='https://zonabotin.com.ar')
        pref = gateway.create_preference(order_id, items, payer)
        redirect(pref['init_point'])
    """

    def __init__(
        self,
        access_token: Optional[str],
        base_url: str,
        timeout: float = 15.0,
        session: requests.Session = None,
        api_url: str = API_URL
    ):
        """
        Args:
            access_token: Token privado (MP_ACCESS_TOKEN)
            base_url: URL pública de la tienda, para callbacks y webhook
            timeout: Timeout en segundos por request
            session: Sesión de requests (inyectable para tests)
            api_url: URL base de la API
        """
        self.access_token = access_token
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.api_url = api_url.rstrip('/')

    @property
    def configured(self) -> bool:
        return bool(self.access_token) and self.access_token != MP_TOKEN_PLACEHOLDER

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.access_token}',
            'Content-Type': 'application/json',
        }

    # =========================================================================
    # PREFERENCIAS
    # =========================================================================

    def callback_urls(self, order_id: str) -> Dict[str, str]:
        """URLs de retorno del checkout, parametrizadas por el pedido."""
        return {
            'success': f'{self.base_url}/checkout/success?order={order_id}',
            'failure': f'{self.base_url}/checkout/failure?order={order_id}',
            'pending': f'{self.base_url}/checkout/pending?order={order_id}',
        }

    @property
    def notification_url(self) -> str:
        return f'{self.base_url}/api/webhook'

    def build_preference(
        self,
        order_id: str,
        items: List[Dict[str, Any]],
        payer: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Arma el cuerpo de la preferencia.

        Args:
            order_id: ID del pedido (external_reference)
            items: [{title, quantity, unit_price, currency_id}]
            payer: Datos del comprador en formato MercadoPago
        """
        return {
            'items': [
                {
                    'title': item.get('title') or 'Producto',
                    'quantity': int(item.get('quantity') or 1),
                    'unit_price': float(item.get('unit_price') or 0),
                    'currency_id': item.get('currency_id') or 'ARS',
                }
                for item in items
            ],
            'payer': payer,
            'back_urls': self.callback_urls(order_id),
            'auto_return': 'approved',
            'external_reference': order_id,
            'notification_url': self.notification_url,
            'statement_descriptor': STATEMENT_DESCRIPTOR,
        }

    def create_preference(
        self,
        order_id: str,
        items: List[Dict[str, Any]],
        payer: Dict[str, Any]
    ) -> Dict[str, str]:
        """
        Crea una preferencia de pago.

        Returns:
            {'id': preference_id, 'init_point': url de pago}

        Raises:
            ConfigurationError: Si falta el token
            IntegrationError: Si MercadoPago falla o responde sin init_point
        """
        if not self.configured:
            raise ConfigurationError('MP_ACCESS_TOKEN', 'Token de MercadoPago no configurado')

        body = self.build_preference(order_id, items, payer)
        data = self._request('POST', '/checkout/preferences', json=body)

        if not data.get('init_point'):
            raise IntegrationError('mercadopago', 'MercadoPago no devolvió un link de pago')

        logger.info("Preferencia %s creada para el pedido %s", data.get('id'), order_id)
        return {'id': data.get('id'), 'init_point': data['init_point']}

    # =========================================================================
    # PAGOS
    # =========================================================================

    def get_payment(self, payment_id: str) -> Dict[str, Any]:
        """
        Consulta un pago por ID.

        Returns:
            Documento del pago (incluye 'status' y 'external_reference')

        Raises:
            ConfigurationError: Si falta el token
            IntegrationError: Si la consulta falla
        """
        if not self.configured:
            raise ConfigurationError('MP_ACCESS_TOKEN', 'Token de MercadoPago no configurado')
        return self._request('GET', f'/v1/payments/{payment_id}')

    # =========================================================================
    # HTTP
    # =========================================================================

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f'{self.api_url}{path}'
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise IntegrationError('mercadopago', f'No se pudo contactar a MercadoPago: {e}') from e

        if not response.ok:
            logger.error("MercadoPago %s %s respondió %s: %s",
                         method, path, response.status_code, response.text[:300])
            raise IntegrationError(
                'mercadopago', f'MercadoPago respondió {response.status_code}'
            )

        try:
            return response.json()
        except ValueError as e:
            raise IntegrationError('mercadopago', 'Respuesta inválida de MercadoPago') from e
