# -*- coding: utf-8 -*-

"""
Jerarquía de excepciones de uatree
"""


class UaTreeError(Exception):
    """Clase base de todos los errores de uatree"""


class ConfigError(UaTreeError):
    """Archivo de configuración ilegible o con claves desconocidas"""


class ConnectError(UaTreeError):
    """No se pudo establecer la sesión con el servidor OPC-UA"""


class BrowseError(UaTreeError):
    """Falló la exploración de referencias de un nodo"""


class ReadError(UaTreeError):
    """Falló la lectura de atributos de un nodo"""


class TraversalError(UaTreeError):
    """Primer fallo de browse/lectura encontrado durante el recorrido"""


class TraversalCancelled(TraversalError):
    """El recorrido fue cancelado antes de terminar"""


class CertificateTrustError(UaTreeError):
    """
    Certificado del servidor rechazado. Nunca se lanza: sólo describe el
    rechazo en el log.
    """

    def __init__(self, subject, error):
        self.subject = subject
        self.error = error
        UaTreeError.__init__(self, "Certificado rechazado (%s). Subject = %s" % (error, subject))
