# -*- coding: utf-8 -*-

"""
Lectura en lote de los atributos de un nodo: una sola petición Read por
nodo, nunca una por atributo.
"""

from opcua import ua

from .discovery import TRANSPORT_ERRORS
from .errors import ReadError
from .node import node_id_string

ATTRIBUTES = (
    ua.AttributeIds.NodeId,
    ua.AttributeIds.NodeClass,
    ua.AttributeIds.BrowseName,
    ua.AttributeIds.DisplayName,
    ua.AttributeIds.DataType,
)


class AttributeReader:

    def __init__(self, manager):
        self.manager = manager

    def read(self, node_id, attributes=ATTRIBUTES):
        """
        Devuelve los valores en el mismo orden que `attributes`. Un atributo
        con estado malo (por ejemplo DataType en un Object) vale None.
        """

        session = self.manager.session
        if session is None:
            raise ReadError("La sesión no está conectada")

        nodes = []
        for attribute in attributes:
            rv = ua.ReadValueId()
            rv.NodeId = node_id
            rv.AttributeId = attribute
            nodes.append(rv)

        params = ua.ReadParameters()
        params.NodesToRead = nodes
        params.TimestampsToReturn = ua.TimestampsToReturn.Neither

        try:
            results = session.client.uaclient.read(params)
        except TRANSPORT_ERRORS as e:
            raise ReadError("Error leyendo %s: %s" % (node_id_string(node_id), e)) from e

        if len(results) != len(nodes):
            raise ReadError("Se pidieron %d atributos de %s y el servidor devolvió %d"
                            % (len(nodes), node_id_string(node_id), len(results)))

        values = []
        for result in results:
            if result.StatusCode.is_good() and result.Value is not None:
                values.append(result.Value.Value)
            else:
                values.append(None)

        return values
