import html

import bleach
from rest_framework import serializers


def clean_text(value: str) -> str:
    """Strip markup from free text before it reaches the database.

    bleach escapes ``&`` and friends; the API stores plain text, so the
    entities are turned back into characters.
    """
    return html.unescape(bleach.clean((value or '').strip(), tags=[], strip=True))


class CleanCharField(serializers.CharField):
    """``CharField`` whose value is passed through :func:`clean_text`."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))
