# ==============================================================================
# ZONA BOTÍN - Aplicación Flask
# ==============================================================================
# Rutas JSON de la tienda: catálogo, carrito, checkout, webhook de pagos,
# cuentas y panel de administración.
#
# Las rutas solo orquestan request → servicio → respuesta. La lógica de
# negocio vive en services/ y los errores del dominio se traducen a
# {"ok": False, "error": mensaje} en un único errorhandler.
# ==============================================================================

import logging
import uuid
from datetime import timedelta
from functools import wraps

import click
from flask import Blueprint, Flask, current_app, request, session
from werkzeug.exceptions import HTTPException

from zona_botin.app_container import AppContainer
from zona_botin.config import Settings
from zona_botin.errors import AuthError, ValidationError, ZonaBotinError
from zona_botin.gateways import ImageFile
from zona_botin.models import status_label
from zona_botin.performance_logger import init_profiling, profile_function

logger = logging.getLogger(__name__)

bp = Blueprint('tienda', __name__)

# Resultados posibles al volver de la pasarela
CHECKOUT_RESULTS = ('success', 'failure', 'pending')

# Claves de sesión de la cuenta (el carrito y el token CSRF sobreviven al logout)
AUTH_SESSION_KEYS = ('uid', 'email', 'is_admin', 'feed_id')


def to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def get_container() -> AppContainer:
    """Contenedor de la app que atiende el request actual."""
    return current_app.extensions['zona_botin']


def _json_body():
    return request.get_json(silent=True) or {}


# ═══════════════════════════════════════════════════════════════════════════
# SEGURIDAD: sesión, permisos y CSRF
# ═══════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'uid' not in session:
            return {"ok": False, "error": "Debes iniciar sesión"}, 401
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    """
    Exige la marca de admin calculada al iniciar sesión.
    Ninguna ruta de admin vuelve a evaluar rol o email por su cuenta.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'uid' not in session:
            return {"ok": False, "error": "Debes iniciar sesión"}, 401
        if not session.get('is_admin'):
            return {"ok": False, "error": "Permiso denegado"}, 403
        return f(*args, **kwargs)
    return wrapper


def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in ('POST', 'PUT', 'DELETE'):
            token = session.get('csrf_token')
            # Header (fetch), campo de formulario (multipart) o cuerpo JSON
            form_token = (
                request.headers.get('X-CSRF-Token') or
                request.headers.get('X-CSRFToken') or
                request.form.get('csrf_token')
            )
            if not form_token and request.is_json:
                form_token = _json_body().get('csrf_token')

            if not token or not form_token or token != form_token:
                return {"ok": False, "error": "CSRF token inválido"}, 403
        return f(*args, **kwargs)
    return wrapper


@bp.after_app_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo detrás de HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════

@bp.app_errorhandler(ZonaBotinError)
def handle_domain_error(e):
    if e.status_code >= 500:
        current_app.logger.error("%s en %s %s: %s",
                                 type(e).__name__, request.method, request.path, e.message)
    return {"ok": False, "error": e.message}, e.status_code


@bp.app_errorhandler(HTTPException)
def handle_http_error(e):
    return {"ok": False, "error": e.description}, e.code


@bp.app_errorhandler(Exception)
def handle_unexpected_error(e):
    current_app.logger.exception("Error inesperado en %s %s", request.method, request.path)
    return {"ok": False, "error": "Error interno. Por favor intentá de nuevo."}, 500


# ═══════════════════════════════════════════════════════════════════════════
# PROTECCIÓN DE RUTAS SENSIBLES
# ═══════════════════════════════════════════════════════════════════════════
@bp.route('/logs/<path:filename>')
@bp.route('/data/<path:filename>')
def block_sensitive_routes(filename):
    """Bloquea acceso a carpetas de logs y datos."""
    return "Not Found", 404


@bp.route('/api/csrf', methods=['GET'])
def api_csrf():
    return {"ok": True, "csrf_token": generate_csrf_token()}


# ═══════════════════════════════════════════════════════════════════════════
# API: CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/productos', methods=['GET'])
def api_productos():
    """Catálogo público. Query: q, marca, orden (newest | price-asc | price-desc)."""
    catalog = get_container().catalog_service
    productos = catalog.list_products(
        search=request.args.get('q'),
        marca=request.args.get('marca'),
        sort=request.args.get('orden'),
    )
    return {"ok": True, "productos": productos, "marcas": catalog.brands()}


@bp.route('/api/productos/<product_id>', methods=['GET'])
def api_producto(product_id):
    producto = get_container().catalog_service.get_product(product_id)
    return {"ok": True, "producto": producto}


# ═══════════════════════════════════════════════════════════════════════════
# API: CARRITO (session-based)
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/carrito', methods=['GET'])
def api_carrito_ver():
    """Ver contenido actual del carrito"""
    return {"ok": True, "carrito": get_container().cart_service.summary()}


@bp.route('/api/carrito/agregar', methods=['POST'])
@verify_csrf
def api_carrito_agregar():
    """
    Agregar producto al carrito.
    Espera JSON con: producto_id, cantidad, talle
    """
    data = _json_body()
    container = get_container()

    producto = container.catalog_service.get_product(data.get('producto_id'))
    talle = str(data.get('talle') or '').strip()
    cantidad = to_int(data.get('cantidad', 1))

    if not talle:
        raise ValidationError('Por favor seleccioná un talle')
    if cantidad is None or cantidad < 1:
        raise ValidationError('La cantidad debe ser al menos 1')
    stock = producto.get('cantidad') or 0
    if cantidad > stock:
        raise ValidationError(f'Solo hay {stock} unidades disponibles')

    cart = container.cart_service
    item = cart.add(producto, cantidad, talle)
    return {"ok": True, "item": item.to_dict(), "carrito": cart.summary()}


@bp.route('/api/carrito/actualizar', methods=['POST'])
@verify_csrf
def api_carrito_actualizar():
    """Cambiar cantidad de una línea (menos de 1 la elimina)"""
    data = _json_body()
    key = data.get('key')
    cantidad = to_int(data.get('cantidad'))
    if not key or cantidad is None:
        raise ValidationError('Datos no recibidos o formato inválido')

    cart = get_container().cart_service
    cart.set_quantity(key, cantidad)
    return {"ok": True, "carrito": cart.summary()}


@bp.route('/api/carrito/eliminar', methods=['POST'])
@verify_csrf
def api_carrito_eliminar():
    """Eliminar una línea del carrito"""
    key = _json_body().get('key')
    if not key:
        raise ValidationError('Datos no recibidos')

    cart = get_container().cart_service
    cart.remove(key)
    return {"ok": True, "mensaje": "Producto eliminado del carrito", "carrito": cart.summary()}


@bp.route('/api/carrito/limpiar', methods=['POST'])
@verify_csrf
def api_carrito_limpiar():
    """Vaciar el carrito"""
    get_container().cart_service.clear()
    return {"ok": True, "mensaje": "Carrito vaciado"}


# ═══════════════════════════════════════════════════════════════════════════
# API: CHECKOUT Y PAGOS
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/checkout', methods=['POST'])
@login_required
@verify_csrf
@profile_function(name="Crear pedido y preferencia de pago")
def api_checkout():
    """
    Crea el pedido y la preferencia de pago.
    Si sale bien vacía el carrito y devuelve el link de pago; si falla,
    el carrito queda intacto.
    """
    data = _json_body()
    container = get_container()
    cart = container.cart_service

    result = container.checkout_service.checkout(
        cart.items(),
        data,
        buyer_uid=session.get('uid'),
        idempotency_key=data.get('idempotency_key') or None,
    )
    cart.clear()
    return {"ok": True, **result.to_dict()}


@bp.route('/checkout/<result>', methods=['GET'])
def checkout_return(result):
    """Datos de la página de retorno de la pasarela (?order=<id>)."""
    if result not in CHECKOUT_RESULTS:
        return {"ok": False, "error": "Página no encontrada"}, 404

    order_id = request.args.get('order', '')
    response = {
        "ok": True,
        "result": result,
        "order_id": order_id,
        "short_id": order_id[:8].upper(),
    }
    order = get_container().order_repo.get(order_id)
    if order:
        response["status"] = order.get('status')
        response["status_label"] = status_label(order.get('status'))
    return response


@bp.route('/api/webhook', methods=['POST'])
def api_webhook():
    """
    Notificaciones de MercadoPago. Sin CSRF ni sesión: el pago se vuelve a
    consultar en la API antes de tocar el pedido. Siempre responde 200.
    """
    payload = request.get_json(silent=True, force=True)
    return get_container().webhook_service.handle_notification(payload), 200


# ═══════════════════════════════════════════════════════════════════════════
# API: CUENTAS
# ═══════════════════════════════════════════════════════════════════════════

def _start_session(user):
    """Guarda el usuario en la sesión y calcula la marca de admin una sola vez."""
    container = get_container()
    _end_session()

    session.permanent = True
    session['uid'] = user['uid']
    session['email'] = user['email']
    session['is_admin'] = container.user_service.is_admin(user)

    if session['is_admin']:
        session['feed_id'] = uuid.uuid4().hex
        container.notification_service.start(session['feed_id'])


def _end_session():
    feed_id = session.get('feed_id')
    if feed_id:
        get_container().notification_service.stop(feed_id)
    for key in AUTH_SESSION_KEYS:
        session.pop(key, None)


@bp.route('/api/auth/registro', methods=['POST'])
@verify_csrf
def api_registro():
    user = get_container().user_service.register(_json_body())
    _start_session(user)
    return {"ok": True, "user": user, "is_admin": session['is_admin']}, 201


@bp.route('/api/auth/login', methods=['POST'])
@verify_csrf
def api_login():
    data = _json_body()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        raise AuthError('Email y contraseña requeridos')

    user = get_container().user_service.authenticate(email, password)
    _start_session(user)
    current_app.logger.info("Inicio de sesión: %s (admin=%s)", email, session['is_admin'])
    return {"ok": True, "user": user, "is_admin": session['is_admin']}


@bp.route('/api/auth/logout', methods=['POST'])
@verify_csrf
def api_logout():
    _end_session()
    return {"ok": True}


@bp.route('/api/auth/perfil', methods=['GET', 'POST'])
@login_required
@verify_csrf
def api_perfil():
    users = get_container().user_service
    if request.method == 'POST':
        user = users.update_profile(session['uid'], _json_body())
    else:
        user = users.get_user(session['uid'])
    return {"ok": True, "user": user, "is_admin": bool(session.get('is_admin'))}


# ═══════════════════════════════════════════════════════════════════════════
# API: ADMIN - PANEL Y PRODUCTOS
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/admin/resumen', methods=['GET'])
@admin_required
def api_admin_resumen():
    return {"ok": True, **get_container().order_service.dashboard_summary()}


def _product_form():
    form = request.form.to_dict()
    if 'talles' in request.form:
        form['talles'] = request.form.getlist('talles')
    return form


def _uploaded_images():
    return [
        ImageFile(filename=f.filename or 'imagen', content_type=f.mimetype or '', data=f.read())
        for f in request.files.getlist('imagenes')
        if f and f.filename
    ]


@bp.route('/api/admin/productos', methods=['GET', 'POST'])
@admin_required
@verify_csrf
def api_admin_productos():
    """
    GET: listado (?q=). POST (multipart): alta con campos del producto y
    archivos en 'imagenes'.
    """
    products = get_container().product_service
    if request.method == 'GET':
        return {"ok": True, "productos": products.list_products(request.args.get('q'))}

    progreso = []
    result = products.create_product(
        _product_form(),
        _uploaded_images(),
        progress=progreso.append,
    )
    return {"ok": True, "progreso": progreso, **result.to_dict()}, 201


@bp.route('/api/admin/productos/<product_id>', methods=['POST', 'DELETE'])
@admin_required
@verify_csrf
def api_admin_producto(product_id):
    """
    POST (multipart): edición. 'imagenes_actuales' lista las URLs que se
    conservan, en orden; 'imagenes' trae archivos nuevos.
    DELETE: baja del documento.
    """
    container = get_container()
    products = container.product_service

    if request.method == 'DELETE':
        products.delete_product(product_id)
        return {"ok": True}

    current = container.catalog_service.get_product(product_id)
    ids = current.get('imagenes_public_ids') or []
    public_ids = {
        url: ids[i] if i < len(ids) else None
        for i, url in enumerate(current.get('imagenes') or [])
    }
    retained = [
        {'url': url, 'public_id': public_ids.get(url)}
        for url in request.form.getlist('imagenes_actuales')
        if url in public_ids
    ]

    progreso = []
    result = products.update_product(
        product_id,
        _product_form(),
        retained,
        _uploaded_images(),
        progress=progreso.append,
    )
    return {"ok": True, "progreso": progreso, **result.to_dict()}


# ═══════════════════════════════════════════════════════════════════════════
# API: ADMIN - PEDIDOS
# ═══════════════════════════════════════════════════════════════════════════

@bp.route('/api/admin/pedidos', methods=['GET'])
@admin_required
def api_admin_pedidos():
    """Listado de pedidos. Query: estado (o 'all'), q."""
    pedidos = get_container().order_service.list_orders(
        status=request.args.get('estado'),
        search=request.args.get('q'),
    )
    return {"ok": True, "pedidos": pedidos}


@bp.route('/api/admin/pedidos/<order_id>', methods=['GET'])
@admin_required
def api_admin_pedido(order_id):
    pedido = get_container().order_service.get_order(order_id)
    return {"ok": True, "pedido": pedido, "status_label": status_label(pedido.get('status'))}


@bp.route('/api/admin/pedidos/<order_id>/estado', methods=['POST'])
@admin_required
@verify_csrf
def api_admin_pedido_estado(order_id):
    status = _json_body().get('status')
    pedido = get_container().order_service.set_status(order_id, status)
    current_app.logger.info("Estado del pedido %s cambiado a %s por %s",
                            order_id, status, session.get('email'))
    return {"ok": True, "pedido": pedido}


@bp.route('/api/admin/pedidos/<order_id>/leido', methods=['POST'])
@admin_required
@verify_csrf
def api_admin_pedido_leido(order_id):
    leido = _json_body().get('leido', True)
    get_container().order_service.mark_read(order_id, bool(leido))
    return {"ok": True}


# ═══════════════════════════════════════════════════════════════════════════
# API: ADMIN - NOTIFICACIONES
# ═══════════════════════════════════════════════════════════════════════════

def _feed_id():
    if 'feed_id' not in session:
        session['feed_id'] = uuid.uuid4().hex
    return session['feed_id']


@bp.route('/api/admin/notificaciones', methods=['GET'])
@admin_required
def api_admin_notificaciones():
    """Feed de pedidos recientes + avisos nuevos desde la última consulta."""
    return {"ok": True, **get_container().notification_service.poll(_feed_id())}


@bp.route('/api/admin/notificaciones/abrir', methods=['POST'])
@admin_required
@verify_csrf
def api_admin_notificaciones_abrir():
    marcados = get_container().notification_service.open_panel(_feed_id())
    return {"ok": True, "marcados": marcados}


# ═══════════════════════════════════════════════════════════════════════════
# APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def configure_logging(level=logging.INFO):
    """Formato de log de consola si nadie configuró el logging antes."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        )


def create_app(settings: Settings = None, payment_gateway=None, image_uploader=None) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        settings: Configuración (por defecto, desde el entorno)
        payment_gateway: Gateway de pagos alternativo (tests)
        image_uploader: Cliente de imágenes alternativo (tests)
    """
    configure_logging()
    settings = settings or Settings.from_env()

    container = AppContainer(settings, payment_gateway, image_uploader)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    if settings.uses_default_secret:
        app.logger.warning("ZONA_SECRET_KEY no definida: usando clave de desarrollo")
    if not settings.payments_configured:
        app.logger.warning("MP_ACCESS_TOKEN no configurado: el checkout no podrá crear pagos")

    # Configuración de cookies de sesión
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=settings.session_lifetime,
        MAX_CONTENT_LENGTH=40 * 1024 * 1024,  # varias imágenes de hasta 5 MB
    )
    app.extensions['zona_botin'] = container
    app.register_blueprint(bp)

    if settings.enable_profiling:
        init_profiling(app, settings.logs_dir)

    @app.cli.command('reap-orders')
    @click.option('--hours', default=24, show_default=True,
                  help='Antigüedad mínima de los pedidos sin link de pago.')
    def reap_orders(hours):
        """Cancela pedidos pendientes que nunca obtuvieron link de pago."""
        reaped = container.order_service.reap_orphaned_checkouts(timedelta(hours=hours))
        click.echo(f"Pedidos cancelados: {len(reaped)}")
        for order_id in reaped:
            click.echo(f"  - {order_id}")

    return app


if __name__ == "__main__":
    import os
    # Desarrollo local; en producción usar WSGI (gunicorn wsgi:app)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    create_app().run(host=HOST, port=PORT, debug=DEBUG)
