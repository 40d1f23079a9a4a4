import base64
import json
from typing import Optional

from app.core.exceptions import ValidationFailed
from app.models.user import ClientPrincipal

PRINCIPAL_HEADER = "x-ms-client-principal"

OBJECT_ID_CLAIM = "http://schemas.microsoft.com/identity/claims/objectidentifier"
EMAIL_CLAIM = "preferred_username"
NAME_CLAIM = "name"


def _claim(claims: list, claim_type: str) -> Optional[str]:
    for claim in claims:
        if isinstance(claim, dict) and claim.get("typ") == claim_type:
            return claim.get("val")
    return None


def decode_client_principal(header: str) -> ClientPrincipal:
    """Decode the base64 JSON principal injected by the identity provider."""
    try:
        principal = json.loads(base64.b64decode(header, validate=True))
    except ValueError as e:
        raise ValidationFailed(f"Malformed {PRINCIPAL_HEADER} header") from e

    if not isinstance(principal, dict):
        raise ValidationFailed(f"Malformed {PRINCIPAL_HEADER} header")

    claims = principal.get("claims") or []
    if not isinstance(claims, list):
        raise ValidationFailed(f"Malformed {PRINCIPAL_HEADER} header")
    return ClientPrincipal(
        auth_id=_claim(claims, OBJECT_ID_CLAIM),
        email=_claim(claims, EMAIL_CLAIM),
        name=_claim(claims, NAME_CLAIM),
    )
