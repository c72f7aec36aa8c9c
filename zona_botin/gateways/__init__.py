# ==============================================================================
# CAPA DE GATEWAYS - Servicios externos
# ==============================================================================
# ├── mercadopago.py → Preferencias de pago y consulta de pagos
# └── cloudinary.py  → Subida de imágenes de productos
# ==============================================================================

from .mercadopago import MercadoPagoGateway
from .cloudinary import CloudinaryUploader, ImageFile, MAX_IMAGE_BYTES

__all__ = [
    'MercadoPagoGateway',
    'CloudinaryUploader',
    'ImageFile',
    'MAX_IMAGE_BYTES',
]
