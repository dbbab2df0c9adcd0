# -*- coding: utf-8 -*-

"""
Operación completa: conectar, recorrer desde la carpeta Objects y guardar
el árbol en JSON.
"""

import logging

from opcua import Client, ua

from . import config
from . import output
from .browse import Browser
from .errors import UaTreeError
from .read import AttributeReader
from .session import SessionManager
from .traverse import Traverser

logger = logging.getLogger(__name__)

OBJECTS_FOLDER = ua.NodeId(ua.ObjectIds.ObjectsFolder)


def get_machine_tree(url, name=output.DEFAULT_NAME, configuration=None, directory=None,
                     client_factory=Client, cancel=None):
    """
    Devuelve True si el archivo <directory>/<name>.json quedó escrito. Un
    recorrido en curso no sobrevive a una reconexión: falla y hay que volver
    a lanzarlo.
    """

    if configuration is None:
        configuration = config.Configuration()

    with SessionManager(configuration, client_factory=client_factory) as manager:
        try:
            manager.connect(url)

            logger.info("Explorando el namespace del servidor OPC-UA")
            traverser = Traverser(Browser(manager), AttributeReader(manager),
                                  max_depth=configuration.max_depth, cancel=cancel)
            records = traverser.traverse(OBJECTS_FOLDER)
        except UaTreeError as e:
            logger.error("Error en get_machine_tree: %s", e)
            return False

    count = sum(1 for record in records for _ in record.walk())
    logger.info("Lectura terminada, %d nodos", count)

    return output.write(records, name, directory)
