# -*- coding: utf-8 -*-

"""
Recorrido en profundidad del espacio de direcciones.

La recursión se expresa con una pila explícita de marcos, de modo que la
profundidad del árbol no depende de la pila de Python. Cada marco guarda la
referencia que se está expandiendo, su profundidad, los hijos ya construidos
y el iterador de las referencias hijas que faltan por visitar.
"""

import logging

from .errors import BrowseError, ReadError, TraversalCancelled, TraversalError
from .node import NodeRecord, node_id_string

logger = logging.getLogger(__name__)

MAX_DEPTH = 10


class VisitedSet:
    """
    Referencias ya expandidas durante un recorrido, indexadas por la
    identidad del objeto referencia y no por el NodeId destino. Conserva las
    referencias para que sus id() no se reutilicen mientras dura el recorrido.
    """

    def __init__(self):
        self._seen = dict()

    def __contains__(self, reference):
        return id(reference) in self._seen

    def __len__(self):
        return len(self._seen)

    def add(self, reference):
        self._seen[id(reference)] = reference


class _Frame:

    __slots__ = ("reference", "depth", "children", "pending")

    def __init__(self, reference, depth, pending=None):
        self.reference = reference
        self.depth = depth
        self.children = []
        self.pending = pending


class Traverser:
    """
    `browser` ofrece browse(node_id) -> [Reference]; `reader` ofrece
    read(node_id) -> [NodeId, NodeClass, BrowseName, DisplayName, DataType].
    `cancel` es un threading.Event opcional que detiene el recorrido.
    """

    def __init__(self, browser, reader, max_depth=MAX_DEPTH, cancel=None):
        self.browser = browser
        self.reader = reader
        self.max_depth = max_depth
        self.cancel = cancel

    def traverse(self, root):
        """
        Devuelve la lista de NodeRecord hijos de `root`, en el orden en que
        los reporta el servidor. Cualquier fallo de browse o lectura aborta
        el recorrido completo con un TraversalError.
        """

        try:
            return self._walk(root)
        except (BrowseError, ReadError) as e:
            raise TraversalError("Recorrido abortado: %s" % e) from e

    def _walk(self, root):
        visited = VisitedSet()
        top = _Frame(None, 0, iter(self.browser.browse(root)))
        stack = [top]

        while True:
            if self.cancel is not None and self.cancel.is_set():
                raise TraversalCancelled("Recorrido cancelado con %d nodos visitados" % len(visited))

            frame = stack[-1]

            if frame.pending is None:
                frame.pending = iter(self._expand(frame, visited))

            reference = next(frame.pending, None)
            if reference is not None:
                stack.append(_Frame(reference, frame.depth + 1))
                continue

            stack.pop()
            if frame is top:
                return frame.children

            values = self.reader.read(frame.reference.node_id)
            record = NodeRecord.from_attributes(frame.reference.node_id, values, frame.children)
            stack[-1].children.append(record)

    def _expand(self, frame, visited):
        """Referencias hijas de un marco; vacío si ya fue visitado o es demasiado profundo"""
        reference = frame.reference

        if frame.depth > self.max_depth:
            return ()

        if reference in visited:
            logger.debug("Referencia ya visitada: %s", node_id_string(reference.node_id))
            return ()

        visited.add(reference)
        return self.browser.browse(reference.node_id)
