# ==============================================================================
# SUBIDA DE IMÁGENES A CLOUDINARY
# ==============================================================================
# Subida sin firma (upload preset) de las fotos de productos.
# Cada imagen es un POST multipart a /v1_1/<cloud>/image/upload.
# ==============================================================================

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from zona_botin.errors import ConfigurationError, IntegrationError

logger = logging.getLogger(__name__)

UPLOAD_URL = 'https://api.cloudinary.com/v1_1/{cloud}/image/upload'
PRODUCTS_FOLDER = 'zona-botin/products'

# Límite de tamaño por imagen (5 MB)
MAX_IMAGE_BYTES = 5 * 1024 * 1024


@dataclass
class ImageFile:
    """
    Imagen recibida en el formulario de productos.

    Attributes:
        filename: Nombre original del archivo
        content_type: Tipo MIME declarado
        data: Contenido binario
    """
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data or b'')

    @property
    def is_image(self) -> bool:
        return (self.content_type or '').startswith('image/')


class CloudinaryUploader:
    """
    Cliente de subida de imágenes.

    Uso:
        uploader = CloudinaryUploader('mi-cloud', 'preset-sin-firma')
        result = uploader.upload(image)   # {'url': ..., 'public_id': ...}
    """

    def __init__(
        self,
        cloud_name: Optional[str],
        upload_preset: Optional[str],
        folder: str = PRODUCTS_FOLDER,
        timeout: float = 15.0,
        session: requests.Session = None
    ):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.folder = folder
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.upload_preset)

    def upload(self, image: ImageFile) -> Dict[str, str]:
        """
        Sube una imagen.

        Returns:
            {'url': secure_url, 'public_id': public_id}

        Raises:
            ConfigurationError: Si falta cloud name o upload preset
            IntegrationError: Si Cloudinary rechaza la subida
        """
        if not self.configured:
            raise ConfigurationError(
                'CLOUDINARY_CLOUD_NAME', 'Cloudinary no está configurado'
            )

        url = UPLOAD_URL.format(cloud=self.cloud_name)
        files = {'file': (image.filename, image.data, image.content_type)}
        data = {'upload_preset': self.upload_preset, 'folder': self.folder}

        try:
            response = self.session.post(url, files=files, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise IntegrationError('cloudinary', f'Error al subir imagen a Cloudinary: {e}') from e

        if not response.ok:
            logger.error("Cloudinary rechazó %s (%s): %s",
                         image.filename, response.status_code, response.text[:300])
            raise IntegrationError('cloudinary', 'Error al subir imagen a Cloudinary')

        try:
            payload = response.json()
        except ValueError as e:
            raise IntegrationError('cloudinary', 'Respuesta inválida de Cloudinary') from e

        return {'url': payload.get('secure_url'), 'public_id': payload.get('public_id')}
