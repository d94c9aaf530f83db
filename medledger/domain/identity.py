"""Caller identity parsing.

Client identities arrive in the form produced by the hosting ledger::

    x509::/C=US/ST=North Carolina/O=Hyperledger/OU=client/CN=user1::/C=US/.../CN=ca.org1

The subject distinguished name comes first, then the issuer, separated by ``::``.
The caller id is the subject's common name. Parsing is pure and fails fast when
the credential carries no ``CN=`` component.
"""

import logging

from medledger.domain.ports import IdentityError

logger = logging.getLogger(__name__)

DN_SEPARATOR = "/"
CN_PREFIX = "CN="
ID_SEPARATOR = "::"


def parse_caller_id(client_id: str) -> str:
    """Extract the caller id from a client identity string.

    Parameters:
        client_id: Client identity (``x509::<subject>::<issuer>``) or a bare DN

    Returns:
        str: The subject common name, cut at the first ``::``

    Raises:
        IdentityError: If ``client_id`` is empty, has no ``CN=`` component,
            or the common name is empty
    """
    if not client_id:
        raise IdentityError("Client identity is empty")

    cn_element = next(
        (element for element in client_id.split(DN_SEPARATOR) if element.startswith(CN_PREFIX)),
        None
    )
    if cn_element is None:
        raise IdentityError(f"Client identity has no {CN_PREFIX} component", details={"client_id": client_id})

    common_name = cn_element[len(CN_PREFIX):]
    caller_id = common_name.split(ID_SEPARATOR)[0]
    if not caller_id:
        raise IdentityError("Client identity has an empty common name", details={"client_id": client_id})

    logger.debug(f"Resolved caller id: {caller_id}")
    return caller_id
