"""
Entra ID authentication for Microsoft Graph.

The app registration authenticates with a client certificate. The
certificate (PEM, private key included) is stored base64-encoded in the
sync configuration.
"""

import base64
import binascii
import logging

from azure.identity import CertificateCredential

from gsuite_dirsync.auth.errors import AuthenticationError

logger = logging.getLogger(__name__)


def decode_certificate(certificate_b64: str) -> bytes:
    """
    Decode the base64-encoded PEM certificate.

    Args:
        certificate_b64: Base64 text of the PEM file

    Returns:
        PEM bytes

    Raises:
        AuthenticationError: If the value is not valid base64 or not PEM
    """
    try:
        # Wrapped output (base64 cert.pem) carries line breaks
        pem = base64.b64decode("".join(certificate_b64.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise AuthenticationError(
            f"Entra client certificate is not valid base64: {e}"
        ) from e

    if b"-----BEGIN" not in pem:
        raise AuthenticationError("Entra client certificate is not a PEM document")

    return pem


def create_entra_credential(
    tenant_id: str, client_id: str, certificate_b64: str
) -> CertificateCredential:
    """
    Create a certificate credential for the Entra ID app registration.

    Args:
        tenant_id: Directory (tenant) id
        client_id: Application (client) id
        certificate_b64: Base64-encoded PEM certificate with private key

    Returns:
        azure-identity CertificateCredential

    Raises:
        AuthenticationError: If the certificate cannot be decoded or loaded
    """
    logger.info("Creating the Entra ID credential")
    pem = decode_certificate(certificate_b64)

    try:
        return CertificateCredential(tenant_id, client_id, certificate_data=pem)
    except ValueError as e:
        raise AuthenticationError(f"Failed to load Entra certificate: {e}") from e
