# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# Este archivo es el punto de entrada para servidores WSGI como Gunicorn.
#
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── zona_botin/      <- Paquete Python
#       ├── __init__.py
#       ├── main.py
#       ├── services/
#       ├── gateways/
#       └── repositories/
#
# La configuración se lee del entorno (ver zona_botin/config.py).
# Tareas de mantenimiento:
#   FLASK_APP=wsgi flask reap-orders --hours 24
# ==============================================================================

from zona_botin.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
