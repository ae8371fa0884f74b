"""
Verification of signed embed requests from the helpdesk host.

The host signs exactly the ``agentId`` query value with HMAC-SHA256 under a
pre-shared secret and sends the base64 digest as ``hmac``. Nothing else in
the query string is covered by the signature.
"""

import base64
import hashlib
import hmac
import logging
from typing import Mapping, Optional

from .models import SignatureCheck

logger = logging.getLogger(__name__)

MISSING_SECRET = "Missing HMAC secret"
MISSING_AGENT_ID = "Missing agentId"
MISSING_SIGNATURE = "Missing hmac"
SIGNATURE_MISMATCH = "Signature mismatch"
SIGNATURE_OK = "OK"


def sign(payload: str, secret: str) -> str:
    """Base64-encoded HMAC-SHA256 of ``payload``."""
    digest = hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def authenticate(
    params: Mapping[str, str], secret: Optional[str], debug: bool = False
) -> SignatureCheck:
    """
    Check the signature on an embed request.

    Args:
        params: Query parameters (``agentId``, ``area``, ``hmac``)
        secret: Shared HMAC secret, None when unconfigured
        debug: Log the comparison inputs at DEBUG level

    Returns:
        SignatureCheck describing the decision; never raises for bad input
    """
    agent_id = params.get("agentId") or None
    area = params.get("area") or None
    received = params.get("hmac") or None

    if not secret:
        return SignatureCheck(
            valid=False, reason=MISSING_SECRET, agentId=agent_id, area=area
        )
    if not agent_id:
        return SignatureCheck(
            valid=False, reason=MISSING_AGENT_ID, received=received, area=area
        )
    if not received:
        return SignatureCheck(
            valid=False,
            reason=MISSING_SIGNATURE,
            canonical=agent_id,
            agentId=agent_id,
            area=area,
        )

    expected = sign(agent_id, secret)
    # compare_digest returns False on a length mismatch without leaking timing
    valid = hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))

    if debug:
        logger.debug(
            f"HMAC check canonical={agent_id!r} received={received!r} "
            f"expected={expected!r} valid={valid}"
        )

    return SignatureCheck(
        valid=valid,
        reason=SIGNATURE_OK if valid else SIGNATURE_MISMATCH,
        canonical=agent_id,
        received=received,
        expected=expected,
        agentId=agent_id,
        area=area,
    )
