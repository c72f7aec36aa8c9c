# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que deben cumplir los repositorios. Los servicios dependen de
# estas interfaces, no de la implementación JSON, así que:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Cambiar el store de documentos solo requiere una nueva implementación
#
# 2. TESTING
#    - Fácil crear dobles que implementen estas interfaces
#
# ==============================================================================

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

Snapshot = List[Dict[str, Any]]


@runtime_checkable
class IDocumentRepository(Protocol):
    """
    Operaciones de una colección de documentos.
    Usado por: Productos, Pedidos, Usuarios.
    """

    def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Obtiene un documento por ID."""
        ...

    def query(
        self,
        where: Optional[Callable[[Dict[str, Any]], bool]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Lista documentos filtrados/ordenados/limitados."""
        ...

    def count(self) -> int:
        """Cantidad de documentos."""
        ...

    def add(self, data: Dict[str, Any]) -> str:
        """Crea un documento y devuelve su ID."""
        ...

    def set(self, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Escribe un documento."""
        ...

    def update(self, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Actualiza campos de un documento."""
        ...

    def delete(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Elimina un documento."""
        ...


@runtime_checkable
class IProductRepository(IDocumentRepository, Protocol):
    """Colección 'products'."""

    def list_newest_first(self) -> List[Dict[str, Any]]:
        """Todos los productos por fecha de creación descendente."""
        ...


@runtime_checkable
class IOrderRepository(IDocumentRepository, Protocol):
    """
    Colección 'orders'.

    Además del CRUD ofrece una suscripción en vivo sobre los pedidos
    más recientes.
    """

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Pedidos por fecha de creación descendente."""
        ...

    def find_by_idempotency_key(self, key: str) -> Optional[Dict[str, Any]]:
        """Pedido creado con esa clave de idempotencia."""
        ...

    def subscribe(
        self,
        callback: Callable[[Snapshot], None],
        limit: int = 20
    ) -> Callable[[], None]:
        """Suscribe un callback; devuelve la función para desuscribir."""
        ...


@runtime_checkable
class IUserRepository(IDocumentRepository, Protocol):
    """Colección 'users' (ID = uid)."""

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Usuario por email (sin distinguir mayúsculas)."""
        ...
