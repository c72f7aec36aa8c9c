# ==============================================================================
# REPOSITORIO BASE - Colecciones de documentos guardadas en archivos JSON
# ==============================================================================
# Cada colección (products, orders, users) es un archivo JSON con la forma
# {doc_id: {campos...}}. Los métodos públicos imitan las operaciones de un
# store de documentos: add / get / set / update / delete / query / count.
# ==============================================================================

import json
import os
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from zona_botin.errors import IntegrationError


class BaseRepository(ABC):
    """
    Clase base abstracta para todos los repositorios.
    Proporciona lectura/escritura de archivos JSON con manejo de
    concurrencia básico mediante locks.
    """

    # Lock global para evitar escrituras concurrentes a archivos
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Inicializa el repositorio con la ruta al archivo JSON.

        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Crea el archivo (y su carpeta) con datos vacíos si no existe."""
        folder = os.path.dirname(self.file_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía para este repositorio."""

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Returns:
            Datos parseados del JSON (vacíos si el archivo está corrupto)

        Raises:
            IntegrationError: Si el archivo no se puede leer
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()
            except OSError as e:
                raise IntegrationError('store', f"No se pudo leer {self.file_path}: {e}") from e

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON.

        Raises:
            IntegrationError: Si hay error de escritura
        """
        with self._file_lock:
            # Archivo temporal + replace para que la escritura sea atómica
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except OSError as e:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise IntegrationError('store', f"No se pudo guardar {self.file_path}: {e}") from e


class CollectionRepository(BaseRepository):
    """
    Colección de documentos indexada por ID.

    Los documentos devueltos siempre incluyen su 'id'.
    Ejemplo: orders.json -> {"a1b2...": {...}, "c3d4...": {...}}
    """

    collection_name = ''

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Carpeta de datos donde vive <collection_name>.json
        """
        super().__init__(os.path.join(base_path, f'{self.collection_name}.json'))

    def _empty_data(self) -> Dict:
        return {}

    def _load(self) -> Dict[str, Dict[str, Any]]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _with_id(doc_id: str, doc: Dict[str, Any]) -> Dict[str, Any]:
        return {**doc, 'id': doc_id}

    @staticmethod
    def new_id() -> str:
        """ID aleatorio de 20 caracteres, al estilo de los stores de documentos."""
        return uuid.uuid4().hex[:20]

    # =========================================================================
    # LECTURA
    # =========================================================================

    def get(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Obtiene un documento por su ID.

        Returns:
            Documento (con 'id') o None si no existe
        """
        if not doc_id:
            return None
        doc = self._load().get(str(doc_id))
        return self._with_id(str(doc_id), doc) if doc is not None else None

    def exists(self, doc_id: str) -> bool:
        return str(doc_id) in self._load()

    def count(self) -> int:
        return len(self._load())

    def query(
        self,
        where: Optional[Callable[[Dict[str, Any]], bool]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Lista documentos filtrados, ordenados y limitados.

        Args:
            where: Predicado sobre el documento (None = todos)
            order_by: Campo de ordenamiento (None = orden de inserción)
            descending: Orden descendente
            limit: Máximo de documentos a devolver

        Returns:
            Lista de documentos con 'id'
        """
        docs = [self._with_id(k, v) for k, v in self._load().items()]
        if where is not None:
            docs = [d for d in docs if where(d)]
        if order_by:
            # Los documentos sin el campo quedan siempre al final
            present = [d for d in docs if d.get(order_by) is not None]
            missing = [d for d in docs if d.get(order_by) is None]
            present.sort(key=lambda d: d[order_by], reverse=descending)
            docs = present + missing
        if limit is not None:
            docs = docs[:max(0, limit)]
        return docs

    # =========================================================================
    # ESCRITURA
    # =========================================================================

    def add(self, data: Dict[str, Any]) -> str:
        """
        Crea un documento con ID nuevo.

        Returns:
            ID asignado
        """
        with self._file_lock:
            docs = self._load()
            doc_id = self.new_id()
            while doc_id in docs:
                doc_id = self.new_id()
            payload = dict(data)
            payload.pop('id', None)
            docs[doc_id] = payload
            self._write_raw(docs)
        self._after_write()
        return doc_id

    def set(self, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        """
        Escribe un documento completo (o lo combina si merge=True).
        """
        with self._file_lock:
            docs = self._load()
            payload = dict(data)
            payload.pop('id', None)
            if merge and str(doc_id) in docs:
                docs[str(doc_id)].update(payload)
            else:
                docs[str(doc_id)] = payload
            self._write_raw(docs)
        self._after_write()

    def update(self, doc_id: str, fields: Dict[str, Any]) -> bool:
        """
        Actualiza campos de un documento existente.

        Returns:
            True si el documento existía
        """
        with self._file_lock:
            docs = self._load()
            doc = docs.get(str(doc_id))
            if doc is None:
                return False
            payload = dict(fields)
            payload.pop('id', None)
            doc.update(payload)
            self._write_raw(docs)
        self._after_write()
        return True

    def delete(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Elimina un documento.

        Returns:
            Documento eliminado o None si no existía
        """
        with self._file_lock:
            docs = self._load()
            removed = docs.pop(str(doc_id), None)
            if removed is not None:
                self._write_raw(docs)
        if removed is None:
            return None
        self._after_write()
        return self._with_id(str(doc_id), removed)

    def _after_write(self) -> None:
        """Hook para subclases que necesitan reaccionar a cambios."""
