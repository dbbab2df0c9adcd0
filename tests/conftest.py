# -*- coding: utf-8 -*-

"""
Servidor y cliente OPC-UA falsos para las pruebas. FakeClient imita la parte
de opcua.Client que usa uatree: descubrimiento, conexión, y las llamadas
browse / browse_next / read / set_security de uaclient.
"""

import datetime
import functools
import time

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from opcua import ua

from uatree import config
from uatree.keepalive import SERVER_STATE
from uatree.session import SessionState

URL = "opc.tcp://localhost:4840"
OBJECTS = ua.NodeId(ua.ObjectIds.ObjectsFolder)
NONE_POLICY = "http://opcfoundation.org/UA/SecurityPolicy#None"


def endpoint(mode=ua.MessageSecurityMode.None_, policy=NONE_POLICY, level=0, certificate=b"", url=URL):
    description = ua.EndpointDescription()
    description.EndpointUrl = url
    description.SecurityMode = mode
    description.SecurityPolicyUri = policy
    description.SecurityLevel = level
    description.ServerCertificate = certificate
    return description


def bad(code):
    value = ua.DataValue()
    value.StatusCode = ua.StatusCode(code)
    return value


def good(value, variant_type):
    return ua.DataValue(ua.Variant(value, variant_type))


def make_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_certificate(name="servidor", days=365, offset=0, key=None, uri=None):
    if key is None:
        key = make_key()
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, name)])
    start = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(days=offset)

    builder = (x509.CertificateBuilder()
               .subject_name(subject)
               .issuer_name(subject)
               .public_key(key.public_key())
               .serial_number(x509.random_serial_number())
               .not_valid_before(start)
               .not_valid_after(start + datetime.timedelta(days=days)))
    if uri is not None:
        names = x509.SubjectAlternativeName([x509.UniformResourceIdentifier(uri)])
        builder = builder.add_extension(names, critical=False)

    return builder.sign(key, hashes.SHA256())


def der(certificate):
    return certificate.public_bytes(serialization.Encoding.DER)


def pem_key(key):
    return key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8,
                             serialization.NoEncryption())


def wait_for(condition, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


class FakeServer:

    def __init__(self, page_size=0):
        self.page_size = page_size
        self.nodes = dict()
        self.endpoints = [endpoint()]
        self.namespaces = ["http://opcfoundation.org/UA/", "urn:fake:server"]
        self.reachable = True
        self.reject_sessions = False
        self.clients = list()
        self.browse_calls = list()
        self.browse_next_calls = 0
        self.read_calls = list()
        self.fail_browse = set()
        self.fail_read = set()
        self.continuations = dict()

        self.nodes[OBJECTS] = dict(name="Objects", node_class=ua.NodeClass.Object, children=[])

    def add(self, parent, name, node_class=ua.NodeClass.Object):
        node_id = ua.NodeId(name, 2)
        self.nodes[node_id] = dict(name=name, node_class=node_class, children=[])
        self.nodes[parent]["children"].append(node_id)
        return node_id

    def link(self, parent, child):
        self.nodes[parent]["children"].append(child)

    def factory(self):
        return functools.partial(FakeClient, self)

    def reference(self, node_id):
        node = self.nodes[node_id]
        description = ua.ReferenceDescription()
        description.NodeId = node_id
        description.ReferenceTypeId = ua.NodeId(ua.ObjectIds.HasComponent)
        description.IsForward = True
        description.BrowseName = ua.QualifiedName(node["name"], node_id.NamespaceIndex)
        description.DisplayName = ua.LocalizedText(node["name"])
        description.NodeClass = node["node_class"]
        return description

    def page(self, references):
        result = ua.BrowseResult()
        result.StatusCode = ua.StatusCode()
        result.ContinuationPoint = b""

        if self.page_size and len(references) > self.page_size:
            token = ("cp%d" % len(self.continuations)).encode()
            self.continuations[token] = references[self.page_size:]
            references = references[:self.page_size]
            result.ContinuationPoint = token

        result.References = references
        return result

    def attribute(self, node_id, attribute):
        if node_id == SERVER_STATE and attribute == ua.AttributeIds.Value:
            return good(0, ua.VariantType.Int32)

        node = self.nodes.get(node_id)
        if node is None:
            return bad(ua.StatusCodes.BadNodeIdUnknown)

        if attribute == ua.AttributeIds.NodeId:
            return good(node_id, ua.VariantType.NodeId)
        if attribute == ua.AttributeIds.NodeClass:
            return good(int(node["node_class"]), ua.VariantType.Int32)
        if attribute == ua.AttributeIds.BrowseName:
            return good(ua.QualifiedName(node["name"], node_id.NamespaceIndex), ua.VariantType.QualifiedName)
        if attribute == ua.AttributeIds.DisplayName:
            return good(ua.LocalizedText(node["name"]), ua.VariantType.LocalizedText)
        if attribute == ua.AttributeIds.DataType and node["node_class"] == ua.NodeClass.Variable:
            return good(ua.NodeId(ua.ObjectIds.Double), ua.VariantType.NodeId)

        return bad(ua.StatusCodes.BadAttributeIdInvalid)


class FakeClient:

    def __init__(self, server, url, timeout=4):
        self.server = server
        self.url = url
        self.timeout = timeout
        self.uaclient = self
        self.alive = True
        self.connected = False
        self.closed = False
        self.security_policy = None
        self.channel_policy = None
        server.clients.append(self)

    def _check(self):
        if not self.alive:
            raise ConnectionResetError("conexión perdida")

    def connect_and_get_server_endpoints(self):
        if not self.server.reachable:
            raise ConnectionRefusedError("servidor inalcanzable")
        return list(self.server.endpoints)

    def connect(self):
        if not self.server.reachable:
            raise ConnectionRefusedError("servidor inalcanzable")
        if self.server.reject_sessions:
            raise ConnectionRefusedError("sesión rechazada")
        self.connected = True

    def set_security(self, policy):
        self.channel_policy = policy

    def disconnect(self):
        self.closed = True
        self.connected = False

    def get_namespace_array(self):
        self._check()
        return list(self.server.namespaces)

    def browse(self, params):
        self._check()
        node_id = params.NodesToBrowse[0].NodeId
        self.server.browse_calls.append(node_id)

        if node_id in self.server.fail_browse:
            result = ua.BrowseResult()
            result.StatusCode = ua.StatusCode(ua.StatusCodes.BadNodeIdUnknown)
            return [result]

        children = self.server.nodes[node_id]["children"]
        return [self.server.page([self.server.reference(child) for child in children])]

    def browse_next(self, params):
        self._check()
        self.server.browse_next_calls += 1
        references = self.server.continuations.pop(params.ContinuationPoints[0])
        return [self.server.page(references)]

    def read(self, params):
        self._check()
        self.server.read_calls.append(params)
        results = []
        for rv in params.NodesToRead:
            if rv.NodeId in self.server.fail_read:
                raise ConnectionResetError("lectura fallida")
            results.append(self.server.attribute(rv.NodeId, rv.AttributeId))
        return results


class FakeManager:
    """Sustituto de SessionManager: sólo expone la sesión actual"""

    def __init__(self, session=None):
        self.session = session


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def session(server):
    client = FakeClient(server, URL)
    client.connect()
    return SessionState(client, endpoint(), server.namespaces)


@pytest.fixture
def manager(session):
    return FakeManager(session)


@pytest.fixture
def configuration(tmp_path):
    return config.Configuration(
        keepalive_interval=3600,
        reconnect_period=3600,
        certificate=str(tmp_path / "missing_cert.der"),
        private_key=str(tmp_path / "missing_key.pem"),
        trusted_directory=str(tmp_path / "trusted"),
    )
