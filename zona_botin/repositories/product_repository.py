# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# Encapsula todo el acceso a products.json
# ==============================================================================

from typing import Any, Dict, List

from zona_botin.repositories.base import CollectionRepository


class ProductRepository(CollectionRepository):
    """
    Repositorio del catálogo.

    Formato de datos en products.json:
    {
        "a1b2c3...": {
            "titulo": "Nike Mercurial Vapor",
            "marca": "Nike",
            "precio": 15000,
            "talles": ["39", "40"],
            "imagenes": [...],
            ...
        }
    }
    """

    collection_name = 'products'

    def list_newest_first(self) -> List[Dict[str, Any]]:
        """
        Todos los productos, más nuevos primero.

        Returns:
            Lista de productos con 'id'
        """
        return self.query(order_by='created_at', descending=True)
