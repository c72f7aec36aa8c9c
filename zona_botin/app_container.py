# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios, gateways y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se pasan gateways falsos en lugar de los reales)
#   - Cambiar el store de documentos sin tocar servicios
# ==============================================================================

from typing import Optional

from zona_botin.config import Settings

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Colecciones JSON en settings.data_dir
# ═══════════════════════════════════════════════════════════════════════════════
from zona_botin.repositories import (
    ProductRepository,
    OrderRepository,
    UserRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# GATEWAYS - Servicios externos
# ═══════════════════════════════════════════════════════════════════════════════
from zona_botin.gateways import MercadoPagoGateway, CloudinaryUploader

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from zona_botin.services import (
    CartService,
    CatalogService,
    CheckoutService,
    WebhookService,
    OrderService,
    ProductService,
    NotificationService,
    UserService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Cada app de Flask tiene su propio contenedor (app.extensions['zona_botin'])
    con una única instancia de cada repositorio y servicio.

    Uso:
        container = AppContainer(Settings.from_env())
        catalog = container.catalog_service
        checkout = container.checkout_service
    """

    def __init__(
        self,
        settings: Settings = None,
        payment_gateway: MercadoPagoGateway = None,
        image_uploader: CloudinaryUploader = None
    ):
        """
        Inicializa el contenedor.

        Args:
            settings: Configuración (por defecto, la del entorno)
            payment_gateway: Gateway de pagos ya construido (tests)
            image_uploader: Cliente de imágenes ya construido (tests)
        """
        self.settings = settings or Settings.from_env()

        # Repositorios (lazy loading)
        self._product_repo: Optional[ProductRepository] = None
        self._order_repo: Optional[OrderRepository] = None
        self._user_repo: Optional[UserRepository] = None

        # Gateways
        self._payment_gateway = payment_gateway
        self._image_uploader = image_uploader

        # Servicios (lazy loading)
        self._cart_service: Optional[CartService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._checkout_service: Optional[CheckoutService] = None
        self._webhook_service: Optional[WebhookService] = None
        self._order_service: Optional[OrderService] = None
        self._product_service: Optional[ProductService] = None
        self._notification_service: Optional[NotificationService] = None
        self._user_service: Optional[UserService] = None


    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def product_repo(self) -> ProductRepository:
        """Repositorio de productos (uno por contenedor)."""
        if self._product_repo is None:
            self._product_repo = ProductRepository(self.settings.data_dir)
        return self._product_repo

    @property
    def order_repo(self) -> OrderRepository:
        """Repositorio de pedidos (uno por contenedor)."""
        if self._order_repo is None:
            self._order_repo = OrderRepository(self.settings.data_dir)
        return self._order_repo

    @property
    def user_repo(self) -> UserRepository:
        """Repositorio de usuarios (uno por contenedor)."""
        if self._user_repo is None:
            self._user_repo = UserRepository(self.settings.data_dir)
        return self._user_repo

    # =========================================================================
    # GATEWAYS
    # =========================================================================

    @property
    def payment_gateway(self) -> MercadoPagoGateway:
        if self._payment_gateway is None:
            self._payment_gateway = MercadoPagoGateway(
                self.settings.mp_access_token,
                self.settings.base_url,
                timeout=self.settings.http_timeout,
            )
        return self._payment_gateway

    @property
    def image_uploader(self) -> CloudinaryUploader:
        if self._image_uploader is None:
            self._image_uploader = CloudinaryUploader(
                self.settings.cloudinary_cloud_name,
                self.settings.cloudinary_upload_preset,
                timeout=self.settings.http_timeout,
            )
        return self._image_uploader

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (lee la sesión del request actual)."""
        if self._cart_service is None:
            self._cart_service = CartService()
        return self._cart_service

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            self._catalog_service = CatalogService(self.product_repo)
        return self._catalog_service

    @property
    def checkout_service(self) -> CheckoutService:
        """Servicio de checkout (uno por contenedor)."""
        if self._checkout_service is None:
            self._checkout_service = CheckoutService(
                self.order_repo,
                self.payment_gateway,
                currency=self.settings.currency
            )
        return self._checkout_service

    @property
    def webhook_service(self) -> WebhookService:
        if self._webhook_service is None:
            self._webhook_service = WebhookService(self.order_repo, self.payment_gateway)
        return self._webhook_service

    @property
    def order_service(self) -> OrderService:
        """Servicio de pedidos del admin (uno por contenedor)."""
        if self._order_service is None:
            self._order_service = OrderService(self.order_repo, self.product_repo)
        return self._order_service

    @property
    def product_service(self) -> ProductService:
        """Servicio de productos del admin (uno por contenedor)."""
        if self._product_service is None:
            self._product_service = ProductService(self.product_repo, self.image_uploader)
        return self._product_service

    @property
    def notification_service(self) -> NotificationService:
        if self._notification_service is None:
            self._notification_service = NotificationService(
                self.order_repo,
                limit=self.settings.notification_limit,
                idle_timeout=self.settings.session_lifetime
            )
        return self._notification_service

    @property
    def user_service(self) -> UserService:
        """Servicio de usuarios (uno por contenedor)."""
        if self._user_service is None:
            self._user_service = UserService(self.user_repo, self.settings.admin_email)
        return self._user_service

