from __future__ import annotations

import re
from urllib.parse import quote

APP_NAME = "DalagHub"


def whatsapp_url(phone: str, title: str) -> str:
    digits = re.sub(r"[^0-9]", "", str(phone or ""))
    text = f"Hi! I'm interested in your listing \"{title}\" on {APP_NAME}."
    return f"https://wa.me/{digits}?text={quote(text, safe='')}"


def phone_url(phone: str) -> str:
    return f"tel:{phone}"
