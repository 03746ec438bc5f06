"""
Costanti per il matching prodotti catalogo / righe listino.
"""

NAME_CLEANUP_PATTERN = r"[^a-z\u0400-\u04ff0-9]+"
"""Caratteri sostituiti da spazio: restano lettere latine, cirilliche e cifre."""

CODE_CLEANUP_PATTERN = r"[^A-Z\u0400-\u04ff0-9]+"
"""Caratteri rimossi dai codici fornitore prima del confronto esatto."""

COMPOSITE_SEPARATOR = ""
"""Separatore usato per concatenare token consecutivi e nell'haystack."""

METHOD_NAME_TOKENS = "name_tokens"
METHOD_EXACT_CODE = "exact_code"

LABEL_MAX_LENGTH = 120
"""Lunghezza massima delle etichette riportate nei warning."""
