# -*- coding: utf-8 -*-

"""
Exploración de las referencias jerárquicas hacia adelante de un nodo
"""

import logging

from opcua import ua

from .discovery import TRANSPORT_ERRORS
from .errors import BrowseError
from .node import node_id_string

logger = logging.getLogger(__name__)

HIERARCHICAL_REFERENCES = ua.NodeId(ua.ObjectIds.HierarchicalReferences)
NODE_CLASS_MASK = ua.NodeClass.Object | ua.NodeClass.Variable | ua.NodeClass.Method


class Reference:
    """
    Arista saliente devuelta por el servidor. La igualdad es la identidad del
    objeto: dos referencias al mismo nodo destino son referencias distintas.
    """

    __slots__ = ("node_id", "reference_type", "browse_name", "display_name", "node_class")

    def __init__(self, node_id, reference_type=None, browse_name=None, display_name=None, node_class=None):
        self.node_id = node_id
        self.reference_type = reference_type
        self.browse_name = browse_name
        self.display_name = display_name
        self.node_class = node_class

    def __repr__(self):
        return "Reference(%s)" % node_id_string(self.node_id)


def resolve(node_id, namespaces):
    """Convierte un ExpandedNodeId con NamespaceUri en un NodeId local"""
    uri = getattr(node_id, "NamespaceUri", None)
    if uri and uri in namespaces:
        return ua.NodeId(node_id.Identifier, namespaces.index(uri), node_id.NodeIdType)
    return node_id


class Browser:
    """Lista las referencias hijas de un nodo siguiendo los continuation points"""

    def __init__(self, manager):
        self.manager = manager

    def browse(self, node_id):
        session = self.manager.session
        if session is None:
            raise BrowseError("La sesión no está conectada")

        description = ua.BrowseDescription()
        description.NodeId = node_id
        description.BrowseDirection = ua.BrowseDirection.Forward
        description.ReferenceTypeId = HIERARCHICAL_REFERENCES
        description.IncludeSubtypes = True
        description.NodeClassMask = NODE_CLASS_MASK
        description.ResultMask = ua.BrowseResultMask.All

        params = ua.BrowseParameters()
        params.NodesToBrowse = [description]
        params.RequestedMaxReferencesPerNode = 0

        try:
            results = session.client.uaclient.browse(params)
            descriptions = self._follow(session.client, results)
        except TRANSPORT_ERRORS as e:
            raise BrowseError("Error explorando %s: %s" % (node_id_string(node_id), e)) from e

        references = []
        for description in descriptions:
            reference = Reference(
                resolve(description.NodeId, session.namespaces),
                description.ReferenceTypeId,
                description.BrowseName,
                description.DisplayName,
                description.NodeClass,
            )
            references.append(reference)

        return references

    def _follow(self, client, results):
        """Acumula las referencias de todas las páginas (BrowseNext)"""
        if not results:
            raise BrowseError("El servidor no devolvió resultados de browse")

        result = results[0]
        result.StatusCode.check()
        references = list(result.References)

        while result.ContinuationPoint:
            params = ua.BrowseNextParameters()
            params.ContinuationPoints = [result.ContinuationPoint]
            params.ReleaseContinuationPoints = False

            results = client.uaclient.browse_next(params)
            if not results:
                raise BrowseError("El servidor no devolvió resultados de BrowseNext")

            result = results[0]
            result.StatusCode.check()
            references.extend(result.References)
            logger.debug("BrowseNext: %d referencias acumuladas", len(references))

        return references
