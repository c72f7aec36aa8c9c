# ==============================================================================
# SERVICIO DE CATÁLOGO
# ==============================================================================
# Lectura pública de productos: búsqueda, filtro por marca y orden.
# Se carga la colección completa (sin paginación) y se filtra en memoria.
# ==============================================================================

from typing import Any, Dict, List, Optional

from zona_botin.errors import NotFoundError
from zona_botin.models import MARCAS
from zona_botin.repositories import ProductRepository

# Valor del selector de marcas que desactiva el filtro
ALL_BRANDS = 'Todas'

SORT_NEWEST = 'newest'
SORT_PRICE_ASC = 'price-asc'
SORT_PRICE_DESC = 'price-desc'
SORT_OPTIONS = (SORT_NEWEST, SORT_PRICE_ASC, SORT_PRICE_DESC)


def matches_search(product: Dict[str, Any], search: Optional[str]) -> bool:
    """True si el título o la marca contienen el texto (sin distinguir mayúsculas)."""
    if not search:
        return True
    needle = search.lower()
    return (needle in (product.get('titulo') or '').lower()
            or needle in (product.get('marca') or '').lower())


def sort_products(products: List[Dict[str, Any]], sort: Optional[str]) -> List[Dict[str, Any]]:
    """
    Ordena productos según la opción elegida.

    newest (o desconocida) conserva el orden recibido; los precios faltantes
    cuentan como 0. El orden es estable.
    """
    if sort == SORT_PRICE_ASC:
        return sorted(products, key=lambda p: p.get('precio') or 0)
    if sort == SORT_PRICE_DESC:
        return sorted(products, key=lambda p: p.get('precio') or 0, reverse=True)
    return list(products)


class CatalogService:
    """
    Servicio de lectura del catálogo.

    Responsabilidades:
    - Listar productos (más nuevos primero)
    - Buscar por título/marca y filtrar por marca exacta
    - Ordenar por novedad o precio
    """

    def __init__(self, product_repo: ProductRepository):
        """
        Args:
            product_repo: Repositorio de productos
        """
        self.product_repo = product_repo

    def list_products(
        self,
        search: Optional[str] = None,
        marca: Optional[str] = None,
        sort: Optional[str] = SORT_NEWEST
    ) -> List[Dict[str, Any]]:
        """
        Lista el catálogo filtrado y ordenado.

        Args:
            search: Texto a buscar en título o marca
            marca: Marca exacta ('Todas' o vacío = sin filtro)
            sort: 'newest' | 'price-asc' | 'price-desc'

        Returns:
            Lista de productos
        """
        products = self.product_repo.list_newest_first()
        search = (search or '').strip()
        filter_brand = marca and marca != ALL_BRANDS

        filtered = [
            p for p in products
            if matches_search(p, search)
            and (not filter_brand or p.get('marca') == marca)
        ]
        return sort_products(filtered, sort)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        """
        Obtiene un producto.

        Raises:
            NotFoundError: Si no existe
        """
        product = self.product_repo.get(product_id)
        if not product:
            raise NotFoundError('products', product_id, 'Producto no encontrado')
        return product

    @staticmethod
    def brands() -> List[str]:
        """Opciones del filtro de marcas ('Todas' primero, sin 'Otra')."""
        return [ALL_BRANDS] + [m for m in MARCAS if m != 'Otra']
