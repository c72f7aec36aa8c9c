# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios y gateways
# 2. Aplican reglas de negocio y validaciones (lanzan errores del dominio)
# 3. Las rutas (controllers) solo llaman a servicios
#
# ESTRUCTURA:
# ├── cart_service.py          → Carrito en la sesión
# ├── catalog_service.py       → Catálogo público (búsqueda, marca, orden)
# ├── checkout_service.py      → Pedido + preferencia de pago
# ├── webhook_service.py       → Notificaciones de la pasarela
# ├── order_service.py         → Pedidos en el panel de admin
# ├── product_service.py       → Alta/edición/baja de productos + imágenes
# ├── notification_service.py  → Feed en vivo de pedidos para el admin
# └── user_service.py          → Registro, login, perfil, permisos
# ==============================================================================

from zona_botin.services.cart_service import CartService
from zona_botin.services.catalog_service import CatalogService
from zona_botin.services.checkout_service import CheckoutService, CheckoutResult
from zona_botin.services.webhook_service import WebhookService
from zona_botin.services.order_service import OrderService
from zona_botin.services.product_service import ProductService, SaveResult
from zona_botin.services.notification_service import (
    NotificationFeed,
    NotificationService,
    FeedState,
)
from zona_botin.services.user_service import UserService

__all__ = [
    'CartService',
    'CatalogService',
    'CheckoutService',
    'CheckoutResult',
    'WebhookService',
    'OrderService',
    'ProductService',
    'SaveResult',
    'NotificationFeed',
    'NotificationService',
    'FeedState',
    'UserService',
]
