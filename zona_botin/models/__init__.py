# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define las entidades del dominio usando dataclasses.
# Beneficios:
#   - Type hints para mejor documentación y autocompletado
#   - Fácil serialización/deserialización a documentos JSON
#   - Independiente del mecanismo de persistencia
# ==============================================================================

from .entities import (
    # Usuarios
    User,
    UserRole,

    # Catálogo
    Product,
    MARCAS,
    TALLES_DEFAULT,
    PROVINCIAS,

    # Carrito
    CartItem,

    # Pedidos
    Order,
    OrderStatus,
    STATUS_LABELS,
    status_label,

    # Utilidades
    format_ars,
    utc_now_iso,
)

__all__ = [
    # Usuarios
    'User',
    'UserRole',

    # Catálogo
    'Product',
    'MARCAS',
    'TALLES_DEFAULT',
    'PROVINCIAS',

    # Carrito
    'CartItem',

    # Pedidos
    'Order',
    'OrderStatus',
    'STATUS_LABELS',
    'status_label',

    # Utilidades
    'format_ars',
    'utc_now_iso',
]
