"""Text normalisation helpers."""

import re
import unicodedata


def strip_accents(text: str) -> str:
    """Remove diacritics ("Descrição" -> "Descricao")."""
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def normalize_header(header: str) -> str:
    """Normalise a CSV header for synonym lookup.

    Lowercases, strips accents and drops everything outside [a-z0-9_], so
    "Data Movimento" and "data_movimento" compare as "datamovimento" and
    "data_movimento" respectively.
    """
    header = strip_accents(header.strip().lower())
    return re.sub(r"[^a-z0-9_]", "", header)
