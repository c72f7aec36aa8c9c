# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica del carrito de compras.
# El carrito se almacena en la sesión de Flask (cookie firmada del navegador),
# se reescribe entero en cada cambio y se relee en cada request.
# ==============================================================================

from typing import Any, Callable, Dict, List, MutableMapping, Optional

from flask import session

from zona_botin.models import CartItem

SESSION_KEY = 'carrito'

# Campos del producto que viajan en la cookie (límite de ~4 KB del navegador)
CART_PRODUCT_FIELDS = ('id', 'titulo', 'marca', 'precio', 'precio_original', 'descuento')


def cart_snapshot(product: Dict[str, Any]) -> Dict[str, Any]:
    """Foto mínima del producto para el carrito: datos de la tarjeta y primera imagen."""
    snapshot = {
        name: product[name]
        for name in CART_PRODUCT_FIELDS
        if product.get(name) is not None
    }
    imagenes = product.get('imagenes') or []
    if imagenes:
        snapshot['imagen'] = imagenes[0]
    return snapshot


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Agregar/eliminar items del carrito
    - Cambiar cantidades (menos de 1 elimina la línea)
    - Calcular totales con el precio guardado al agregar

    La clave de cada línea es "<producto_id>-<talle>": el mismo producto en
    dos talles son dos líneas. El control de stock lo hace quien llama.
    """

    def __init__(self, storage: Callable[[], MutableMapping] = None):
        """
        Inicializa el servicio de carrito.

        Args:
            storage: Función que devuelve el almacenamiento (por defecto la
                sesión de Flask del request actual)
        """
        self._storage = storage or (lambda: session)

    def _get_cart(self) -> List[CartItem]:
        """
        Obtiene el carrito actual del almacenamiento.

        Returns:
            Lista de líneas
        """
        raw = self._storage().get(SESSION_KEY) or []
        return [CartItem.from_dict(item) for item in raw]

    def _save_cart(self, cart: List[CartItem]) -> None:
        """
        Guarda el carrito completo.

        Args:
            cart: Lista de líneas
        """
        store = self._storage()
        store[SESSION_KEY] = [item.to_dict() for item in cart]
        if hasattr(store, 'modified'):
            store.modified = True

    # =========================================================================
    # MUTACIONES
    # =========================================================================

    def add(self, product: Dict[str, Any], quantity: int, talle: str) -> CartItem:
        """
        Agrega un producto al carrito.

        Si ya existe la línea producto+talle, suma la cantidad.

        Args:
            product: Producto (se guarda solo cart_snapshot(product))
            quantity: Cantidad a agregar
            talle: Talle elegido

        Returns:
            La línea resultante
        """
        cart = self._get_cart()
        key = CartItem.make_key(product.get('id'), talle)

        existing = next((item for item in cart if item.key == key), None)
        if existing:
            existing.qty += quantity
            line = existing
        else:
            line = CartItem(product=cart_snapshot(product), qty=quantity, talle=str(talle), key=key)
            cart.append(line)

        self._save_cart(cart)
        return line

    def remove(self, key: str) -> None:
        """
        Elimina una línea del carrito.

        Args:
            key: Clave "<producto_id>-<talle>"
        """
        self._save_cart([item for item in self._get_cart() if item.key != key])

    def set_quantity(self, key: str, quantity: int) -> None:
        """
        Cambia la cantidad de una línea. Con cantidad < 1 la elimina.

        Args:
            key: Clave de la línea
            quantity: Nueva cantidad
        """
        if quantity < 1:
            self.remove(key)
            return

        cart = self._get_cart()
        for item in cart:
            if item.key == key:
                item.qty = quantity
                break
        self._save_cart(cart)

    def clear(self) -> None:
        """Vacía el carrito completamente."""
        self._save_cart([])

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def items(self) -> List[CartItem]:
        return self._get_cart()

    def get_item(self, key: str) -> Optional[CartItem]:
        return next((item for item in self._get_cart() if item.key == key), None)

    def total(self) -> float:
        """Suma de precio guardado × cantidad de cada línea."""
        return sum(item.subtotal for item in self._get_cart())

    def count(self) -> int:
        """Cantidad total de unidades."""
        return sum(item.qty for item in self._get_cart())

    def is_empty(self) -> bool:
        return not self._get_cart()

    def summary(self) -> Dict[str, Any]:
        """
        Carrito con totales calculados.

        Returns:
            Dict con items, total_items, total_monto, items_count
        """
        cart = self._get_cart()
        return {
            'items': [item.to_dict() for item in cart],
            'total_items': sum(item.qty for item in cart),
            'total_monto': round(sum(item.subtotal for item in cart), 2),
            'items_count': len(cart),
        }
