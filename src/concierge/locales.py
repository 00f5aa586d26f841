"""Supported locales and the short sentences the concierge says without the model."""

from __future__ import annotations

from typing import Literal

Locale = Literal["en", "es"]

DEFAULT_LOCALE: Locale = "en"

UNIT_LINES = {
    "en": "The resident is from Unit {unit}.",
    "es": "El residente es de la Unidad {unit}.",
}

# Spoken when the loop ends without producing any text
FALLBACK_MESSAGES = {
    "en": "Sorry, I couldn't finish that request. Could you try asking again?",
    "es": "Lo siento, no pude completar esa solicitud. ¿Puedes intentarlo de nuevo?",
}

# Spoken when the model service drops mid-answer
FAILURE_MESSAGES = {
    "en": "Sorry, something went wrong on my end. Please try again in a moment.",
    "es": "Lo siento, algo salió mal. Por favor, inténtalo de nuevo en un momento.",
}


def localized(table: dict[str, str], locale: str | None) -> str:
    return table.get(locale or DEFAULT_LOCALE) or table[DEFAULT_LOCALE]
