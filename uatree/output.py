# -*- coding: utf-8 -*-

"""
Serialización del árbol de nodos a un documento JSON
"""

import json
import logging
import os
import tempfile

from .node import NodeRecord

logger = logging.getLogger(__name__)

DEFAULT_NAME = "NodesTree"


def to_dict(record):
    return {
        "NodeType": record.node_class,
        "NodeId": record.node_id,
        "BrowseName": record.browse_name,
        "DisplayName": record.display_name,
        "Datatype": record.data_type,
        "Child": [to_dict(child) for child in record.children],
    }


def from_dict(data):
    return NodeRecord(
        node_id=data["NodeId"],
        node_class=data["NodeType"],
        browse_name=data["BrowseName"],
        display_name=data["DisplayName"],
        data_type=data["Datatype"],
        children=tuple(from_dict(child) for child in data.get("Child", ())),
    )


def dumps(records):
    return json.dumps([to_dict(record) for record in records], indent=2, ensure_ascii=False)


def loads(document):
    return [from_dict(data) for data in json.loads(document)]


def path(name=DEFAULT_NAME, directory=None):
    if directory is None:
        directory = os.getcwd()
    return os.path.join(directory, name + ".json")


def umask():
    current = os.umask(0)
    os.umask(current)
    return current


def write(records, name=DEFAULT_NAME, directory=None):
    """
    Escribe el árbol en <directory>/<name>.json. Se escribe primero un
    archivo temporal que luego reemplaza al destino, así un fallo deja intacto
    cualquier archivo anterior. Devuelve False si no se pudo escribir.
    """

    target = path(name, directory)
    document = dumps(records)

    try:
        handle, temporary = tempfile.mkstemp(prefix=".%s." % os.path.basename(target), suffix=".tmp",
                                             dir=os.path.dirname(target))
    except OSError as e:
        logger.error("No se pudo crear %s: %s", target, e)
        return False

    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(document)
        # mkstemp crea el archivo con 0600; el destino sigue la umask como open()
        os.chmod(temporary, 0o666 & ~umask())
        os.replace(temporary, target)
    except OSError as e:
        logger.error("No se pudo escribir %s: %s", target, e)
        if os.path.exists(temporary):
            os.remove(temporary)
        return False

    return os.path.exists(target)


def load(filename):
    with open(filename, encoding="utf-8") as stream:
        return loads(stream.read())
