# -*- coding: utf-8 -*-

"""
Configuración del cliente OPC-UA
"""

import json
import logging
import os

from .errors import ConfigError

logger = logging.getLogger(__name__)

ENVIRONMENT_VARIABLE = "UATREE_CONFIG"

DEFAULTS = {
    "application_name": "Get Machine Nodeset Client",
    "application_uri": "urn:uatree:client",
    "session_name": "GetMachineClient",
    "request_timeout": 60,          # segundos
    "discovery_timeout": 15,        # segundos
    "keepalive_interval": 5,        # segundos
    "reconnect_period": 10,         # segundos, 0 desactiva la reconexión
    "auto_accept": True,
    "max_depth": 10,
    "certificate": "certificates/client_cert.der",
    "private_key": "certificates/client_key.pem",
    "trusted_directory": "certificates/trusted",
    "log_level": "INFO",
}


class Configuration:
    """
    Valores de configuración accesibles como atributos. Cualquier clave no
    indicada toma su valor de DEFAULTS.
    """

    def __init__(self, **values):
        unknown = set(values) - set(DEFAULTS)
        if unknown:
            raise ConfigError("Claves de configuración desconocidas: %s" % ", ".join(sorted(unknown)))

        self.__dict__.update(DEFAULTS)
        self.__dict__.update(values)

    def __repr__(self):
        return "Configuration(%s)" % ", ".join("%s=%r" % item for item in sorted(self.__dict__.items()))

    def has_certificate(self):
        """True si existen el certificado de la aplicación y su clave privada"""
        return bool(self.certificate and self.private_key
                    and os.path.isfile(self.certificate)
                    and os.path.isfile(self.private_key))


def load(path):
    """Carga la configuración desde un archivo JSON"""
    try:
        with open(path, encoding="utf-8") as handle:
            values = json.load(handle)
    except (OSError, ValueError) as e:
        raise ConfigError("No se pudo leer %s: %s" % (path, e)) from e

    if not isinstance(values, dict):
        raise ConfigError("%s debe contener un objeto JSON" % path)

    logger.debug("Configuración cargada desde %s", path)
    return Configuration(**values)


def from_environment():
    """Usa el archivo indicado en UATREE_CONFIG, o los valores por defecto"""
    path = os.environ.get(ENVIRONMENT_VARIABLE)
    if not path:
        return Configuration()
    return load(path)
