# -*- coding: utf-8 -*-

"""
Registro inmutable de un nodo del árbol exportado
"""

from dataclasses import dataclass

from opcua import ua


def node_id_string(node_id):
    """ua.NodeId -> 'ns=2;i=5'"""
    if node_id is None:
        return ""
    if hasattr(node_id, "to_string"):
        return node_id.to_string()
    return str(node_id)


def node_class_name(value):
    if value is None:
        return ua.NodeClass.Unspecified.name
    try:
        return ua.NodeClass(int(value)).name
    except ValueError:
        return ua.NodeClass.Unspecified.name


def browse_name_string(value):
    if value is None:
        return ""
    if hasattr(value, "to_string"):
        return value.to_string()
    return str(value)


def text(value):
    if value is None:
        return ""
    if hasattr(value, "Text"):
        return value.Text or ""
    return str(value)


@dataclass(frozen=True)
class NodeRecord:
    node_id: str
    node_class: str = "Unspecified"
    browse_name: str = ""
    display_name: str = ""
    data_type: str = ""
    children: tuple = ()

    @classmethod
    def from_attributes(cls, node_id, values, children=()):
        """
        Construye el registro a partir de los cinco atributos leídos, en el
        orden de read.ATTRIBUTES. Si el servidor no devolvió el NodeId se usa
        el destino de la referencia.
        """

        read_id, node_class, browse_name, display_name, data_type = values
        if read_id is None:
            read_id = node_id

        return cls(
            node_id=node_id_string(read_id),
            node_class=node_class_name(node_class),
            browse_name=browse_name_string(browse_name),
            display_name=text(display_name),
            data_type=node_id_string(data_type),
            children=tuple(children),
        )

    def walk(self):
        """Recorre este nodo y sus descendientes en preorden"""
        stack = [self]
        while stack:
            record = stack.pop()
            yield record
            stack.extend(reversed(record.children))
