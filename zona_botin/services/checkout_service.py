# ==============================================================================
# SERVICIO DE CHECKOUT
# ==============================================================================
# Orquesta la compra:
#   1. Valida el formulario del comprador
#   2. Guarda el pedido en estado 'pending'
#   3. Pide a MercadoPago una preferencia de pago
#   4. Devuelve el link de pago (la ruta vacía el carrito y redirige)
#
# Si falla el paso 3 el pedido queda guardado sin link de pago; un reintento
# con la misma clave de idempotencia reutiliza ese pedido y los huérfanos
# se limpian con OrderService.reap_orphaned_checkouts().
# ==============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from zona_botin.errors import ConfigurationError, IntegrationError, ValidationError
from zona_botin.gateways import MercadoPagoGateway
from zona_botin.models import PROVINCIAS, CartItem, Order, OrderStatus, utc_now_iso
from zona_botin.repositories import OrderRepository

logger = logging.getLogger(__name__)

# Campos obligatorios del formulario, en el orden en que se validan
REQUIRED_FIELDS = (
    ('nombre', 'Ingresá tu nombre'),
    ('apellido', 'Ingresá tu apellido'),
    ('email', 'Ingresá tu email'),
    ('telefono', 'Ingresá tu teléfono'),
    ('dni', 'Ingresá tu DNI'),
    ('direccion', 'Ingresá tu dirección de envío'),
    ('ciudad', 'Ingresá tu ciudad'),
    ('provincia', 'Seleccioná tu provincia'),
    ('codigo_postal', 'Ingresá tu código postal'),
)

CHECKOUT_ERROR = 'Error al procesar el pago. Intentá de nuevo'


@dataclass
class CheckoutResult:
    """Resultado de un checkout exitoso."""
    order_id: str
    preference_id: Optional[str]
    init_point: str
    reused: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'order_id': self.order_id,
            'preference_id': self.preference_id,
            'init_point': self.init_point,
        }


def _clean(form: Dict[str, Any], name: str) -> str:
    return str(form.get(name) or '').strip()


class CheckoutService:
    """
    Servicio de checkout.

    Responsabilidades:
    - Validar carrito y datos del comprador
    - Crear el pedido con foto de los productos del carrito
    - Crear la preferencia de pago y guardar su link en el pedido
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        gateway: MercadoPagoGateway,
        currency: str = 'ARS'
    ):
        """
        Args:
            order_repo: Repositorio de pedidos
            gateway: Cliente de la pasarela de pagos
            currency: Moneda de los items de la preferencia
        """
        self.order_repo = order_repo
        self.gateway = gateway
        self.currency = currency

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def validate(self, cart_items: List[CartItem], form: Dict[str, Any]) -> None:
        """
        Valida carrito y formulario.

        Raises:
            ValidationError: Con el mensaje de la primera regla que falla
        """
        if not cart_items:
            raise ValidationError('Tu carrito está vacío')
        for name, message in REQUIRED_FIELDS:
            value = _clean(form, name)
            if not value or (name == 'provincia' and value not in PROVINCIAS):
                raise ValidationError(message)

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    def checkout(
        self,
        cart_items: List[CartItem],
        form: Dict[str, Any],
        buyer_uid: Optional[str] = None,
        idempotency_key: Optional[str] = None
    ) -> CheckoutResult:
        """
        Ejecuta el checkout completo (un solo intento, sin reintentos).

        Args:
            cart_items: Líneas del carrito
            form: Datos del comprador (nombre, apellido, email, ...)
            buyer_uid: Usuario que compra
            idempotency_key: Token del cliente para reintentos seguros

        Returns:
            CheckoutResult con el link de pago

        Raises:
            ValidationError: Datos incompletos (no se escribe nada)
            ConfigurationError: Falta el token de pagos (no se escribe nada)
            IntegrationError: Falló el guardado o la pasarela
        """
        self.validate(cart_items, form)
        if not self.gateway.configured:
            raise ConfigurationError('MP_ACCESS_TOKEN', 'Token de MercadoPago no configurado')

        existing = self.order_repo.find_by_idempotency_key(idempotency_key) if idempotency_key else None
        if existing and existing.get('init_point'):
            logger.info("Checkout repetido para el pedido %s, se reutiliza el link", existing['id'])
            return CheckoutResult(
                order_id=existing['id'],
                preference_id=existing.get('preference_id'),
                init_point=existing['init_point'],
                reused=True,
            )

        if existing:
            # Se cobra lo que quedó guardado en el pedido, no el carrito actual
            order_id = existing['id']
            cart_items = Order.from_dict(existing).items
            logger.info("Reintentando preferencia para el pedido %s", order_id)
        else:
            order = self.build_order(cart_items, form, buyer_uid, idempotency_key)
            order_id = self.order_repo.add(order.to_dict())
            logger.info("Pedido %s creado (%s items, total %s)",
                        order_id, len(order.items), order.total)

        try:
            preference = self.gateway.create_preference(
                order_id,
                self.preference_items(cart_items),
                self.payer(form),
            )
        except IntegrationError as e:
            logger.error("No se pudo crear la preferencia del pedido %s: %s", order_id, e)
            raise IntegrationError('mercadopago', CHECKOUT_ERROR) from e

        self.order_repo.update(order_id, {
            'preference_id': preference.get('id'),
            'init_point': preference['init_point'],
            'updated_at': utc_now_iso(),
        })

        return CheckoutResult(
            order_id=order_id,
            preference_id=preference.get('id'),
            init_point=preference['init_point'],
            reused=existing is not None,
        )

    # =========================================================================
    # ARMADO DE DATOS
    # =========================================================================

    def build_order(
        self,
        cart_items: List[CartItem],
        form: Dict[str, Any],
        buyer_uid: Optional[str] = None,
        idempotency_key: Optional[str] = None
    ) -> Order:
        """Pedido pendiente con los items del carrito tal cual."""
        return Order(
            id=None,
            buyer_uid=buyer_uid,
            buyer_name=f"{_clean(form, 'nombre')} {_clean(form, 'apellido')}",
            email=_clean(form, 'email'),
            phone=_clean(form, 'telefono'),
            dni=_clean(form, 'dni'),
            address=_clean(form, 'direccion'),
            city=_clean(form, 'ciudad'),
            province=_clean(form, 'provincia'),
            postal_code=_clean(form, 'codigo_postal'),
            nota=_clean(form, 'nota'),
            items=list(cart_items),
            total=sum(item.subtotal for item in cart_items),
            status=OrderStatus.PENDING,
            read_by_admin=False,
            idempotency_key=idempotency_key,
        )

    def preference_items(self, cart_items: List[CartItem]) -> List[Dict[str, Any]]:
        return [
            {
                'title': f"{item.product.get('titulo', 'Producto')} - Talle {item.talle}",
                'quantity': item.qty,
                'unit_price': item.unit_price,
                'currency_id': self.currency,
            }
            for item in cart_items
        ]

    @staticmethod
    def payer(form: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'name': _clean(form, 'nombre'),
            'surname': _clean(form, 'apellido'),
            'email': _clean(form, 'email'),
            'phone': {'number': _clean(form, 'telefono')},
            'identification': {'type': 'DNI', 'number': _clean(form, 'dni')},
            'address': {
                'street_name': _clean(form, 'direccion'),
                'zip_code': _clean(form, 'codigo_postal'),
            },
        }
