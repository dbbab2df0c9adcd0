# -*- coding: utf-8 -*-

"""
Descubrimiento de endpoints y selección del más seguro disponible
"""

import concurrent.futures
import logging
from urllib.parse import urlparse

from opcua import Client, ua
from opcua.ua.uaerrors import UaError
from opcua.crypto import security_policies

from .errors import ConnectError

logger = logging.getLogger(__name__)

SCHEME = "opc.tcp"

SUPPORTED_POLICIES = dict((policy.URI, policy) for policy in (
    security_policies.SecurityPolicyBasic128Rsa15,
    security_policies.SecurityPolicyBasic256,
    security_policies.SecurityPolicyBasic256Sha256,
))

TRANSPORT_ERRORS = (UaError, OSError, concurrent.futures.TimeoutError)


def policy_name(uri):
    """'http://.../SecurityPolicy#Basic256Sha256' -> 'Basic256Sha256'"""
    return uri[uri.rfind("#") + 1:]


def check_url(url):
    parsed = urlparse(url or "")
    if parsed.scheme != SCHEME or not parsed.hostname:
        raise ConnectError("URL de endpoint no válida: %r (se espera %s://host:puerto)" % (url, SCHEME))
    return parsed


def discover(url, timeout, client_factory=Client):
    """Consulta los endpoints anunciados por el servidor en `url`"""
    check_url(url)

    client = client_factory(url, timeout=timeout)
    try:
        endpoints = client.connect_and_get_server_endpoints()
    except TRANSPORT_ERRORS as e:
        raise ConnectError("No se pudo alcanzar %s en %ss: %s" % (url, timeout, e)) from e

    logger.debug("%s anuncia %d endpoints", url, len(endpoints))
    return list(endpoints)


def is_secure(endpoint):
    return endpoint.SecurityMode != ua.MessageSecurityMode.None_


def select_endpoint(endpoints, use_security):
    """
    Con certificado de aplicación se elige el endpoint seguro soportado de
    mayor SecurityLevel; sin él, o si no hay ninguno, el endpoint sin
    seguridad.
    """

    candidates = []
    for endpoint in endpoints:
        scheme = urlparse(endpoint.EndpointUrl or "").scheme
        if scheme and scheme != SCHEME:
            continue
        candidates.append(endpoint)

    if use_security:
        secure = [endpoint for endpoint in candidates
                  if is_secure(endpoint) and endpoint.SecurityPolicyUri in SUPPORTED_POLICIES]
        if secure:
            return max(secure, key=lambda endpoint: endpoint.SecurityLevel)

    for endpoint in candidates:
        if not is_secure(endpoint):
            if use_security:
                logger.warning("El servidor no ofrece una política segura soportada, se usa conexión sin seguridad")
            return endpoint

    raise ConnectError("El servidor no ofrece ningún endpoint utilizable")
