# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a las colecciones de documentos.
# Las interfaces (métodos públicos) son las de un store de documentos:
# get / query / add / set / update / delete, más la suscripción en vivo
# sobre pedidos.
#
# ESTRUCTURA:
# ├── interfaces.py          → Protocolos/Interfaces (contratos)
# ├── base.py                → BaseRepository, CollectionRepository (JSON)
# ├── product_repository.py  → Acceso a products.json
# ├── order_repository.py    → Acceso a orders.json + suscripciones
# └── user_repository.py     → Acceso a users.json
# ==============================================================================

# Interfaces
from .interfaces import (
    IDocumentRepository,
    IProductRepository,
    IOrderRepository,
    IUserRepository,
)

# Implementaciones concretas (JSON)
from .base import BaseRepository, CollectionRepository
from .product_repository import ProductRepository
from .order_repository import OrderRepository
from .user_repository import UserRepository

__all__ = [
    # Interfaces
    'IDocumentRepository',
    'IProductRepository',
    'IOrderRepository',
    'IUserRepository',

    # Clases base
    'BaseRepository',
    'CollectionRepository',

    # Implementaciones JSON
    'ProductRepository',
    'OrderRepository',
    'UserRepository',
]
