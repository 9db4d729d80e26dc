from __future__ import annotations

_CREDENTIAL_TIP = " Tip: Check your Runware API key with the 'set_api_key' tool or the RUNWARE_API_KEY environment variable."


def _looks_like_auth_issue(text: str) -> bool:
    """Best-effort detection for auth/billing issues from API errors."""
    if not text:
        return False
    lower = text.lower()

    keywords = [
        # auth/credentials
        "api key",
        "apikey",
        "invalid key",
        "missing key",
        "unauthorized",
        "forbidden",
        "credentials",
        "authentication",
        "http 401",
        "http 403",
        # billing/quota
        "billing",
        "quota",
        "insufficient credit",
    ]

    return any(k in lower for k in keywords)


def augment_with_credential_tip(message: str) -> str:
    """Append a credential tip to the message when appropriate."""
    if not message:
        return message
    if _CREDENTIAL_TIP.strip() in message:
        return message
    if _looks_like_auth_issue(message):
        return message.rstrip() + _CREDENTIAL_TIP
    return message


__all__ = ["augment_with_credential_tip"]
