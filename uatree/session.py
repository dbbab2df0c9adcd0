# -*- coding: utf-8 -*-

"""
Ciclo de vida de la sesión OPC-UA: descubrimiento de endpoints, negociación
de seguridad, confianza en el certificado del servidor, creación de la
sesión anónima, keep-alive y reconexión.

La sesión actual y la reconexión en curso sólo se leen o modifican con
SessionManager._lock tomado. El resto del paquete obtiene la sesión viva a
través de SessionManager.session, una vez por cada llamada remota.
"""

import logging
import threading

from opcua import Client
from opcua.crypto import uacrypto

from . import certificates
from . import config
from . import discovery
from . import keepalive
from .errors import CertificateTrustError, ConnectError
from .reconnect import ReconnectHandler

logger = logging.getLogger(__name__)


class SessionState:
    """Una sesión abierta: cliente, tabla de namespaces, seguridad y latido"""

    def __init__(self, client, endpoint, namespaces):
        self.client = client
        self.endpoint = endpoint
        self.namespaces = list(namespaces)
        self.security_mode = endpoint.SecurityMode
        self.security_policy = endpoint.SecurityPolicyUri
        self.heartbeat = None

    def __repr__(self):
        return "SessionState(%s, %s)" % (discovery.policy_name(self.security_policy), self.security_mode)

    def start_heartbeat(self, callback, interval):
        check = lambda: keepalive.probe(self.client)
        self.heartbeat = keepalive.Heartbeat(self, check, callback, interval).start()

    def stop_heartbeat(self):
        if self.heartbeat is not None:
            self.heartbeat.stop()
            self.heartbeat = None


class SessionManager:
    """
    Dueño de la única sesión de un cliente. `validator` es la política de
    certificados (certificado, error) -> bool; por defecto
    certificates.default_policy(configuration.auto_accept).

    Se usa como context manager para garantizar la desconexión:

        with SessionManager(configuration) as manager:
            manager.connect("opc.tcp://localhost:4840")
            ...
    """

    def __init__(self, configuration=None, validator=None, client_factory=Client):
        if configuration is None:
            configuration = config.Configuration()
        if validator is None:
            validator = certificates.default_policy(configuration.auto_accept)

        self.config = configuration
        self.validator = validator
        self.client_factory = client_factory
        self.trust_store = certificates.TrustStore(configuration.trusted_directory)
        self.reconnect_period = configuration.reconnect_period

        self.url = None
        self.endpoint = None

        self._lock = threading.Lock()
        self._session = None
        self._reconnect = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.disconnect()
        return False

    @property
    def session(self):
        with self._lock:
            return self._session

    @property
    def reconnecting(self):
        with self._lock:
            return self._reconnect is not None

    def connect(self, url):
        """Abre la sesión con el servidor en `url`; lanza ConnectError si no es posible"""
        if self.session is not None:
            raise ConnectError("Ya existe una sesión abierta con %s" % self.url)

        self.url = url

        use_security = self.config.has_certificate()
        if not use_security:
            logger.warning("Falta el certificado de la aplicación, se usa conexión sin seguridad")

        logger.info("Descubriendo endpoints de %s", url)
        endpoints = discovery.discover(url, self.config.discovery_timeout, self.client_factory)
        endpoint = discovery.select_endpoint(endpoints, use_security)
        logger.info("El endpoint seleccionado usa %s", discovery.policy_name(endpoint.SecurityPolicyUri))

        self.check_certificate(endpoint)

        logger.info("Creando sesión con el servidor OPC-UA")
        session = self._open_session(endpoint)
        self.endpoint = endpoint

        with self._lock:
            self._session = session
            session.start_heartbeat(self._keepalive, self.config.keepalive_interval)

        return session

    def check_certificate(self, endpoint):
        """Sólo los endpoints seguros exigen un certificado de servidor aceptado"""
        if not discovery.is_secure(endpoint):
            return

        accepted, certificate, error = certificates.validate(
            endpoint.ServerCertificate, self.trust_store, self.validator)

        if not accepted:
            rejection = CertificateTrustError(certificates.subject(certificate), error)
            logger.warning("%s", rejection)
            raise ConnectError("Certificado del servidor rechazado: %s" % error)

    def _secure(self, client, endpoint):
        policy = discovery.SUPPORTED_POLICIES[endpoint.SecurityPolicyUri]

        try:
            server_certificate = uacrypto.x509_from_der(endpoint.ServerCertificate)
            certificate = uacrypto.load_certificate(self.config.certificate)
            private_key = uacrypto.load_private_key(self.config.private_key)
        except (OSError, ValueError) as e:
            raise ConnectError("Certificado de la aplicación inválido: %s" % e) from e

        # Servidores estrictos exigen que coincida con el SubjectAltName del certificado
        client.application_uri = certificates.application_uri(certificate, self.config.application_uri)
        client.security_policy = policy(server_certificate, certificate, private_key, endpoint.SecurityMode)
        client.uaclient.set_security(client.security_policy)

    def _open_session(self, endpoint):
        client = self.client_factory(self.url, timeout=self.config.request_timeout)
        client.name = self.config.session_name
        client.description = self.config.application_name
        client.application_uri = self.config.application_uri

        if discovery.is_secure(endpoint):
            self._secure(client, endpoint)

        try:
            client.connect()
        except discovery.TRANSPORT_ERRORS as e:
            raise ConnectError("El servidor rechazó la sesión: %s" % e) from e

        try:
            namespaces = client.get_namespace_array()
        except discovery.TRANSPORT_ERRORS as e:
            self._close_client(client)
            raise ConnectError("No se pudo leer la tabla de namespaces: %s" % e) from e

        return SessionState(client, endpoint, namespaces)

    def _reopen(self):
        return self._open_session(self.endpoint)

    def _keepalive(self, session, status):
        """
        Callback del latido. Arranca una reconexión ante un estado malo si no
        hay otra en curso; ignora eventos de sesiones ya reemplazadas.
        """

        if status.is_good():
            return

        with self._lock:
            if session is not self._session:
                return

            if self.reconnect_period <= 0:
                logger.warning("KeepAlive con estado %s, pero la reconexión está desactivada", status.name)
                return

            if self._reconnect is not None:
                logger.info("KeepAlive con estado %s, reconexión en curso", status.name)
                return

            logger.info("KeepAlive con estado %s, reconectando en %ss", status.name, self.reconnect_period)
            self._reconnect = ReconnectHandler(
                session, self._reopen, self.reconnect_period, self._reconnect_complete)
            self._reconnect.begin()

    def _reconnect_complete(self, handler):
        stale = None
        replaced = None

        with self._lock:
            if handler is not self._reconnect:
                stale = handler.session
            else:
                if handler.session is not None:
                    replaced = self._session
                    self._session = handler.session
                    self._session.start_heartbeat(self._keepalive, self.config.keepalive_interval)
                self._reconnect = None

        if stale is not None:
            logger.debug("Descartando la sesión de una reconexión abandonada")
            self._close(stale)
            return

        if replaced is not None:
            self._close(replaced)
            logger.info("--- RECONECTADO ---")

    def _close_client(self, client):
        try:
            client.disconnect()
        except discovery.TRANSPORT_ERRORS as e:
            logger.warning("Error al desconectar: %s", e)

    def _close(self, session):
        session.stop_heartbeat()
        self._close_client(session.client)

    def disconnect(self):
        """
        Detiene el latido, descarta cualquier reconexión en curso y cierra la
        sesión. Devuelve False si no había nada que desconectar.
        """

        with self._lock:
            session = self._session
            handler = self._reconnect
            self._session = None
            self._reconnect = None

        # Fuera del lock: los hilos que se esperan pueden estar pidiéndolo.
        if handler is not None:
            handler.dispose()

        if session is None:
            logger.info("Sesión no creada, nada que desconectar")
            return False

        logger.info("Desconectando...")
        self._close(session)
        logger.info("Sesión desconectada")
        return True
