# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia:
# los repositorios guardan dicts, las entidades se convierten con
# to_dict() / from_dict().
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Timestamp ISO-8601 en UTC (equivalente al serverTimestamp del store)."""
    return datetime.now(timezone.utc).isoformat()


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "admin"
    USER = "user"


class OrderStatus(str, Enum):
    """
    Estados de un pedido que el admin puede asignar.

    El webhook de pagos escribe el estado que informa la pasarela tal cual
    (por ejemplo "rejected" o "in_process"), así que un pedido guardado
    puede tener un estado fuera de esta lista.
    """
    PENDING = "pending"        # Esperando pago
    APPROVED = "approved"      # Pagado
    SHIPPED = "shipped"        # Enviado
    DELIVERED = "delivered"    # Entregado
    CANCELLED = "cancelled"    # Cancelado


STATUS_LABELS = {
    OrderStatus.PENDING.value: 'Pendiente',
    OrderStatus.APPROVED.value: 'Pagado',
    OrderStatus.SHIPPED.value: 'Enviado',
    OrderStatus.DELIVERED.value: 'Entregado',
    OrderStatus.CANCELLED.value: 'Cancelado',
}


def status_label(status: str) -> str:
    """Etiqueta legible de un estado; los desconocidos se muestran como Pendiente."""
    return STATUS_LABELS.get(status, STATUS_LABELS[OrderStatus.PENDING.value])


# Marcas que ofrece el formulario de productos
MARCAS = ('Nike', 'Adidas', 'Puma', 'New Balance', 'Mizuno', 'Umbro', 'Otra')

# Curva de talles por defecto
TALLES_DEFAULT = tuple(str(t) for t in range(35, 47))

# Provincias argentinas del formulario de envío
PROVINCIAS = (
    'Buenos Aires', 'CABA', 'Córdoba', 'Santa Fe', 'Mendoza', 'Tucumán',
    'Entre Ríos', 'Salta', 'Misiones', 'Chaco', 'Corrientes',
    'Santiago del Estero', 'San Juan', 'Jujuy', 'Río Negro', 'Neuquén',
    'Formosa', 'Chubut', 'San Luis', 'Catamarca', 'La Rioja', 'La Pampa',
    'Santa Cruz', 'Tierra del Fuego',
)


def format_ars(amount: float) -> str:
    """
    Formatea un monto al estilo es-AR: separador de miles '.' y decimales ','.

    Los montos enteros no muestran decimales (31000 -> "31.000").
    """
    amount = float(amount or 0)
    if amount == int(amount):
        return f"{int(amount):,}".replace(',', '.')
    text = f"{amount:,.2f}"
    return text.replace(',', '_').replace('.', ',').replace('_', '.')


# ==============================================================================
# ENTIDADES DE USUARIO
# ==============================================================================

@dataclass
class User:
    """
    Representa una cuenta de la tienda.

    Attributes:
        uid: Identificador único
        email: Email de acceso (único)
        password_hash: Hash werkzeug de la contraseña
        role: Rol guardado (admin | user)
        nombre, apellido, telefono, dni: Datos de contacto
        direccion, ciudad, provincia, codigo_postal: Envío por defecto
    """
    uid: str
    email: str
    password_hash: str = ''
    role: UserRole = UserRole.USER
    nombre: str = ''
    apellido: str = ''
    telefono: str = ''
    dni: str = ''
    direccion: str = ''
    ciudad: str = ''
    provincia: str = ''
    codigo_postal: str = ''
    created_at: str = ''

    PROFILE_FIELDS = (
        'nombre', 'apellido', 'telefono', 'dni',
        'direccion', 'ciudad', 'provincia', 'codigo_postal',
    )

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now_iso()

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'uid': self.uid,
            'email': self.email,
            'password': self.password_hash,
            'role': self.role.value if isinstance(self.role, Enum) else self.role,
            'created_at': self.created_at,
        }
        for name in self.PROFILE_FIELDS:
            d[name] = getattr(self, name)
        return d

    def public_dict(self) -> Dict[str, Any]:
        """Datos seguros para enviar al cliente (sin hash)."""
        d = self.to_dict()
        d.pop('password', None)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario."""
        try:
            role = UserRole(data.get('role', 'user'))
        except ValueError:
            role = UserRole.USER
        return cls(
            uid=data.get('uid', ''),
            email=data.get('email', ''),
            password_hash=data.get('password', ''),
            role=role,
            created_at=data.get('created_at', ''),
            **{name: data.get(name, '') or '' for name in cls.PROFILE_FIELDS}
        )


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador del documento
        titulo: Nombre visible
        marca: Marca (ver MARCAS)
        precio: Precio de venta (> 0)
        precio_original: Precio tachado para mostrar descuento
        descuento: Porcentaje de descuento mostrado
        cantidad: Stock informativo (no se descuenta al vender)
        talles: Talles disponibles
        imagenes: URLs públicas de las imágenes
        imagenes_public_ids: Identificadores en el CDN (paralelo a imagenes)
    """
    id: Optional[str]
    titulo: str
    precio: float
    marca: str = ''
    descripcion: str = ''
    categoria: str = ''
    precio_original: Optional[float] = None
    descuento: float = 0
    cantidad: int = 0
    talles: List[str] = field(default_factory=list)
    imagenes: List[str] = field(default_factory=list)
    imagenes_public_ids: List[Optional[str]] = field(default_factory=list)
    created_at: str = ''
    updated_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'titulo': self.titulo,
            'descripcion': self.descripcion,
            'marca': self.marca,
            'categoria': self.categoria,
            'precio': self.precio,
            'precio_original': self.precio_original,
            'descuento': self.descuento,
            'cantidad': self.cantidad,
            'talles': list(self.talles),
            'imagenes': list(self.imagenes),
            'imagenes_public_ids': list(self.imagenes_public_ids),
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
        if self.id is not None:
            d['id'] = self.id
        return d


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass
class CartItem:
    """
    Línea del carrito.

    El producto se guarda como foto (snapshot) al momento de agregarlo:
    si luego cambia el precio en el catálogo, el carrito no se entera.

    Attributes:
        key: "<producto_id>-<talle>"
        product: Snapshot del producto
        qty: Cantidad
        talle: Talle elegido
    """
    product: Dict[str, Any]
    qty: int
    talle: str
    key: str = ''

    def __post_init__(self):
        if not self.key:
            self.key = self.make_key(self.product.get('id'), self.talle)

    @staticmethod
    def make_key(product_id: Any, talle: Any) -> str:
        return f"{product_id}-{talle}"

    @property
    def unit_price(self) -> float:
        return float(self.product.get('precio', 0) or 0)

    @property
    def subtotal(self) -> float:
        """Subtotal de la línea."""
        return self.unit_price * self.qty

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para la sesión o el pedido."""
        return {
            'key': self.key,
            'product': self.product,
            'qty': self.qty,
            'talle': self.talle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        """Crea instancia desde diccionario."""
        return cls(
            product=data.get('product', {}) or {},
            qty=int(data.get('qty', 0) or 0),
            talle=str(data.get('talle', '')),
            key=data.get('key', ''),
        )


# ==============================================================================
# ENTIDADES DE PEDIDOS
# ==============================================================================

@dataclass
class Order:
    """
    Pedido generado en el checkout.

    Lo crea el checkout, lo modifican el webhook de pagos (status, payment_id)
    y el panel de admin (status, read_by_admin). Nunca se borra.
    """
    id: Optional[str]
    buyer_name: str
    email: str
    phone: str
    dni: str
    address: str
    city: str
    province: str
    postal_code: str
    items: List[CartItem] = field(default_factory=list)
    total: float = 0.0
    nota: str = ''
    buyer_uid: Optional[str] = None
    status: str = OrderStatus.PENDING.value
    read_by_admin: bool = False
    payment_id: Optional[str] = None
    preference_id: Optional[str] = None
    init_point: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: str = ''
    updated_at: str = ''

    def __post_init__(self):
        if not self.created_at:
            self.created_at = utc_now_iso()
        if isinstance(self.status, Enum):
            self.status = self.status.value

    @property
    def short_id(self) -> str:
        """Primeros 8 caracteres en mayúsculas, como se muestra al comprador."""
        return (self.id or '')[:8].upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        d = {
            'buyer_uid': self.buyer_uid,
            'buyer_name': self.buyer_name,
            'email': self.email,
            'phone': self.phone,
            'dni': self.dni,
            'address': self.address,
            'city': self.city,
            'province': self.province,
            'postal_code': self.postal_code,
            'nota': self.nota,
            'items': [i.to_dict() for i in self.items],
            'total': self.total,
            'status': self.status,
            'read_by_admin': self.read_by_admin,
            'payment_id': self.payment_id,
            'preference_id': self.preference_id,
            'init_point': self.init_point,
            'idempotency_key': self.idempotency_key,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
        if self.id is not None:
            d['id'] = self.id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id'),
            buyer_name=data.get('buyer_name', ''),
            email=data.get('email', ''),
            phone=data.get('phone', ''),
            dni=data.get('dni', ''),
            address=data.get('address', ''),
            city=data.get('city', ''),
            province=data.get('province', ''),
            postal_code=data.get('postal_code', ''),
            items=[CartItem.from_dict(i) for i in data.get('items', [])],
            total=data.get('total', 0) or 0,
            nota=data.get('nota', ''),
            buyer_uid=data.get('buyer_uid'),
            status=data.get('status', OrderStatus.PENDING.value),
            read_by_admin=bool(data.get('read_by_admin', False)),
            payment_id=data.get('payment_id'),
            preference_id=data.get('preference_id'),
            init_point=data.get('init_point'),
            idempotency_key=data.get('idempotency_key'),
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', ''),
        )
