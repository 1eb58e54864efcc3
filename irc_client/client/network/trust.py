"""
TLS Trust Policy

Builds the TLS context used by the transport: either the platform
default certificate validation or a lenient mode that accepts any
server certificate.
"""

import logging
import ssl

from irc_client.shared.exceptions import TrustPolicyError


logger = logging.getLogger(__name__)


def build_tls_config(lenient: bool = False) -> ssl.SSLContext:
    """
    Build the TLS context for a connection.

    Lenient mode removes all transport authenticity guarantees and is
    meant for self-signed or test servers only.

    Args:
        lenient: Accept any certificate, chain and hostname.

    Returns:
        A client-side SSL context.

    Raises:
        TrustPolicyError: If the context cannot be created in this environment.
    """
    try:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        if lenient:
            # check_hostname must be cleared before verify_mode can drop to CERT_NONE
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
    except (ssl.SSLError, ValueError, OSError) as e:
        raise TrustPolicyError(f"Failed to build TLS context: {e}", lenient=lenient) from e

    if lenient:
        logger.warning("TLS certificate verification is DISABLED; any server certificate will be accepted")
    return context
