# ==============================================================================
# EXCEPCIONES DEL DOMINIO
# ==============================================================================
# Los servicios lanzan estas excepciones; main.py las traduce a respuestas
# JSON {"ok": False, "error": mensaje} con el código HTTP de cada clase.
# ==============================================================================


class ZonaBotinError(Exception):
    """Excepción base de la tienda."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ZonaBotinError):
    """Datos ingresados por el usuario faltantes o inválidos."""

    status_code = 400


class AuthError(ZonaBotinError):
    """Credenciales inválidas o sesión inexistente."""

    status_code = 401


class NotFoundError(ZonaBotinError):
    """Documento inexistente en una colección."""

    status_code = 404

    def __init__(self, collection: str, doc_id: str, message: str = None):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(message or f"No existe el documento {doc_id} en {collection}")


class IntegrationError(ZonaBotinError):
    """Falla al hablar con un servicio externo (pagos, imágenes, almacenamiento)."""

    status_code = 502

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(message)


class ConfigurationError(ZonaBotinError):
    """Falta una variable de entorno requerida por la operación."""

    status_code = 500

    def __init__(self, setting: str, message: str = None):
        self.setting = setting
        super().__init__(message or f"Falta configurar {setting}")
