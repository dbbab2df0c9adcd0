# -*- coding: utf-8 -*-

"""
Cliente OPC-UA que recorre el espacio de direcciones de un servidor y lo
exporta como un árbol de nodos en JSON.
"""

from . import config
from . import output

from .browse import Browser, Reference
from .errors import (
    BrowseError,
    CertificateTrustError,
    ConfigError,
    ConnectError,
    ReadError,
    TraversalCancelled,
    TraversalError,
    UaTreeError,
)
from .machine import get_machine_tree
from .node import NodeRecord
from .read import ATTRIBUTES, AttributeReader
from .session import SessionManager, SessionState
from .traverse import Traverser, VisitedSet

__version__ = "0.1.0"
