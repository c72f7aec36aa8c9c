# ==============================================================================
# SERVICIO DE PRODUCTOS (ADMIN)
# ==============================================================================
# Alta, edición y baja de productos del catálogo.
#
# Las imágenes nuevas se validan todas antes de subir nada (tipo y tamaño),
# después se suben de a una. Si una falla se sigue con las demás y el error
# se devuelve como aviso; el producto se guarda con las que sí subieron.
# ==============================================================================

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from zona_botin.errors import IntegrationError, NotFoundError, ValidationError, ZonaBotinError
from zona_botin.gateways import CloudinaryUploader, ImageFile, MAX_IMAGE_BYTES
from zona_botin.models import MARCAS, TALLES_DEFAULT, Product, utc_now_iso
from zona_botin.repositories import ProductRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class SaveResult:
    """
    Resultado de guardar un producto.

    Attributes:
        product: Producto guardado (con id)
        errors: Avisos de imágenes que no se pudieron subir
    """
    product: Dict[str, Any]
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'product': self.product, 'errors': list(self.errors)}


def _parse_number(value: Any, cast=float) -> Optional[float]:
    """Número finito o None ('nan' e 'inf' no son precios)."""
    if value is None or str(value).strip() == '':
        return None
    try:
        number = cast(str(value).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _optional_number(form: Dict[str, Any], name: str, message: str) -> Optional[float]:
    """Campo numérico opcional: vacío es None, cualquier otra cosa debe ser >= 0."""
    raw = form.get(name)
    if raw is None or str(raw).strip() == '':
        return None
    number = _parse_number(raw)
    if number is None or number < 0:
        raise ValidationError(message)
    return number


def _parse_talles(value: Any) -> List[str]:
    """Acepta lista o texto separado por comas."""
    if value is None:
        return list(TALLES_DEFAULT)
    if isinstance(value, str):
        value = value.split(',')
    return [str(t).strip() for t in value if str(t).strip()]


class ProductService:
    """
    Servicio de administración de productos.

    Responsabilidades:
    - Validar el formulario de producto
    - Validar y subir imágenes al CDN
    - Crear, actualizar y borrar documentos de producto
    """

    def __init__(self, product_repo: ProductRepository, uploader: CloudinaryUploader):
        """
        Args:
            product_repo: Repositorio de productos
            uploader: Cliente de subida de imágenes
        """
        self.product_repo = product_repo
        self.uploader = uploader

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def validate(
        self,
        form: Dict[str, Any],
        retained_images: Sequence[Dict[str, Any]] = (),
        new_images: Sequence[ImageFile] = ()
    ) -> Dict[str, Any]:
        """
        Valida el formulario y devuelve los campos normalizados.

        Orden: título, precio > 0, cantidad >= 0, marca, al menos una imagen,
        precio original y descuento (opcionales, >= 0).

        Raises:
            ValidationError: Con el mensaje de la primera regla que falla
        """
        titulo = str(form.get('titulo') or '').strip()
        if not titulo:
            raise ValidationError('El título es obligatorio')

        precio = _parse_number(form.get('precio'))
        if precio is None or precio <= 0:
            raise ValidationError('Ingresá un precio válido mayor a 0')

        cantidad = _parse_number(form.get('cantidad'), int)
        if cantidad is None or cantidad < 0:
            raise ValidationError('Ingresá una cantidad válida')

        marca = str(form.get('marca') or '').strip()
        if not marca:
            raise ValidationError('Seleccioná una marca')
        if marca not in MARCAS:
            raise ValidationError(f'Marca inválida: {marca}')

        if len(retained_images) + len(new_images) == 0:
            raise ValidationError('Agregá al menos una imagen')

        precio_original = _optional_number(form, 'precio_original', 'Ingresá un precio original válido')
        descuento = _optional_number(form, 'descuento', 'Ingresá un descuento válido')

        return {
            'titulo': titulo,
            'precio': precio,
            'cantidad': cantidad,
            'marca': marca,
            'descripcion': str(form.get('descripcion') or '').strip(),
            'categoria': str(form.get('categoria') or '').strip(),
            'precio_original': precio_original,
            'descuento': descuento or 0,
            'talles': _parse_talles(form.get('talles')),
        }

    @staticmethod
    def check_images(images: Sequence[ImageFile]) -> None:
        """
        Raises:
            ValidationError: Si algún archivo no es imagen o supera 5 MB
        """
        for image in images:
            if not image.is_image:
                raise ValidationError(f'{image.filename} no es una imagen válida')
            if image.size > MAX_IMAGE_BYTES:
                raise ValidationError(f'{image.filename} supera los 5MB')

    # =========================================================================
    # SUBIDA DE IMÁGENES
    # =========================================================================

    def upload_images(
        self,
        images: Sequence[ImageFile],
        progress: Optional[ProgressCallback] = None
    ):
        """
        Sube imágenes en secuencia.

        Args:
            images: Imágenes ya validadas
            progress: Recibe el porcentaje tras cada subida exitosa

        Returns:
            Tupla (subidas, errores); subidas = [{'url', 'public_id'}]
        """
        uploaded: List[Dict[str, str]] = []
        errors: List[str] = []
        total = len(images)

        for i, image in enumerate(images):
            try:
                uploaded.append(self.uploader.upload(image))
            except ZonaBotinError as e:
                logger.warning("Falló la subida de %s: %s", image.filename, e.message)
                errors.append(f'Error imagen {i + 1}: {e.message}')
                continue
            if progress:
                progress(round((i + 1) / total * 100))

        return uploaded, errors

    # =========================================================================
    # ALTA / EDICIÓN / BAJA
    # =========================================================================

    def create_product(
        self,
        form: Dict[str, Any],
        new_images: Sequence[ImageFile] = (),
        progress: Optional[ProgressCallback] = None
    ) -> SaveResult:
        """
        Crea un producto.

        Raises:
            ValidationError: Formulario o imágenes inválidas (no se sube nada)
            IntegrationError: No se pudo subir ninguna imagen
        """
        return self._save(None, form, [], new_images, progress)

    def update_product(
        self,
        product_id: str,
        form: Dict[str, Any],
        retained_images: Sequence[Dict[str, Any]] = (),
        new_images: Sequence[ImageFile] = (),
        progress: Optional[ProgressCallback] = None
    ) -> SaveResult:
        """
        Actualiza un producto existente.

        Args:
            retained_images: Imágenes ya guardadas que se conservan
                ({'url', 'public_id'}), en orden

        Raises:
            NotFoundError: Producto inexistente
        """
        if not self.product_repo.exists(product_id):
            raise NotFoundError('products', product_id, 'Producto no encontrado')
        return self._save(product_id, form, retained_images, new_images, progress)

    def _save(self, product_id, form, retained_images, new_images, progress) -> SaveResult:
        fields = self.validate(form, retained_images, new_images)
        self.check_images(new_images)

        uploaded, errors = self.upload_images(new_images, progress)
        images = [
            {'url': img.get('url'), 'public_id': img.get('public_id')}
            for img in retained_images if img.get('url')
        ] + uploaded

        if not images:
            raise IntegrationError('cloudinary', '; '.join(errors) or 'No se pudo subir ninguna imagen')

        now = utc_now_iso()
        product = Product(
            id=product_id,
            imagenes=[img['url'] for img in images],
            imagenes_public_ids=[img.get('public_id') for img in images],
            updated_at=now,
            **fields
        )

        if product_id is None:
            product.created_at = now
            product.id = self.product_repo.add(product.to_dict())
            logger.info("Producto creado: %s (%s)", product.titulo, product.id)
        else:
            data = product.to_dict()
            data.pop('created_at')
            self.product_repo.update(product_id, data)
            logger.info("Producto actualizado: %s (%s)", product.titulo, product_id)

        saved = self.product_repo.get(product.id)
        return SaveResult(product=saved, errors=errors)

    def delete_product(self, product_id: str) -> None:
        """
        Borra el documento del producto. Las imágenes quedan en el CDN.

        Raises:
            NotFoundError: Producto inexistente
        """
        removed = self.product_repo.delete(product_id)
        if removed is None:
            raise NotFoundError('products', product_id, 'Producto no encontrado')
        logger.info("Producto eliminado: %s (%s)", removed.get('titulo'), product_id)

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """Productos más nuevos primero, filtrados por título o marca."""
        needle = (search or '').strip().lower()
        products = self.product_repo.list_newest_first()
        if not needle:
            return products
        return [
            p for p in products
            if needle in (p.get('titulo') or '').lower()
            or needle in (p.get('marca') or '').lower()
        ]
