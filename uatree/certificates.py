# -*- coding: utf-8 -*-

"""
Validación del certificado del servidor.

La decisión de aceptar o rechazar un certificado defectuoso es una función
pura (certificado, error) -> bool que se inyecta en el SessionManager. No
modifica el estado de la sesión ni lanza excepciones.
"""

import datetime
import enum
import logging
import os

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from opcua.crypto import uacrypto

logger = logging.getLogger(__name__)

CERTIFICATE_EXTENSIONS = (".der", ".pem", ".crt", ".cer")


class CertificateError(enum.Enum):
    UNTRUSTED = "BadCertificateUntrusted"
    TIME_INVALID = "BadCertificateTimeInvalid"
    INVALID = "BadCertificateInvalid"

    def __str__(self):
        return self.value


def default_policy(auto_accept=True):
    """
    Política por defecto: acepta un certificado cuyo único defecto es no ser
    de confianza, siempre que auto_accept esté activo. Rechaza todo lo demás.
    """

    def policy(certificate, error):
        return auto_accept and error is CertificateError.UNTRUSTED

    return policy


def subject(certificate):
    if certificate is None:
        return "<desconocido>"
    return certificate.subject.rfc4514_string()


def fingerprint(certificate):
    return certificate.fingerprint(hashes.SHA256())


def application_uri(certificate, default=None):
    """URI de la aplicación en el SubjectAltName del certificado, o `default`"""
    try:
        names = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return default

    uris = names.get_values_for_type(x509.UniformResourceIdentifier)
    return uris[0] if uris else default


class TrustStore:
    """Certificados de confianza cargados desde un directorio"""

    def __init__(self, directory=None):
        self.directory = directory
        self.fingerprints = set()

        if directory and os.path.isdir(directory):
            self.load(directory)

    def load(self, directory):
        for name in sorted(os.listdir(directory)):
            if not name.lower().endswith(CERTIFICATE_EXTENSIONS):
                continue

            path = os.path.join(directory, name)
            try:
                certificate = uacrypto.load_certificate(path)
            except (OSError, ValueError) as e:
                logger.warning("Certificado de confianza ilegible %s: %s", path, e)
                continue

            self.add(certificate)

        logger.debug("%d certificados de confianza en %s", len(self.fingerprints), directory)

    def add(self, certificate):
        self.fingerprints.add(fingerprint(certificate))

    def __contains__(self, certificate):
        return fingerprint(certificate) in self.fingerprints

    def check(self, certificate, now=None):
        """Devuelve el defecto del certificado, o None si es válido y de confianza"""
        if now is None:
            now = datetime.datetime.now(datetime.timezone.utc)

        if now < certificate.not_valid_before_utc or now > certificate.not_valid_after_utc:
            return CertificateError.TIME_INVALID

        if certificate not in self:
            return CertificateError.UNTRUSTED

        return None


def validate(data, trust_store, policy):
    """
    Valida el certificado DER `data` enviado por el servidor. Devuelve una
    tupla (aceptado, certificado, error); error es None si no hubo defecto y
    la política no fue consultada.
    """

    try:
        certificate = uacrypto.x509_from_der(data)
    except ValueError:
        certificate = None

    if certificate is None:
        error = CertificateError.INVALID
    else:
        error = trust_store.check(certificate)

    if error is None:
        return True, certificate, None

    accepted = bool(policy(certificate, error))
    if accepted:
        logger.info("Certificado no confiable aceptado. Subject = %s", subject(certificate))

    return accepted, certificate, error
