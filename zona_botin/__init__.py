# ==============================================================================
# ZONA BOTÍN - Tienda online de botines
# ==============================================================================
# Paquete principal. La aplicación Flask vive en zona_botin.main y se expone
# para Gunicorn a través de wsgi.py en la raíz del repositorio.
# ==============================================================================

__version__ = '1.0.0'
