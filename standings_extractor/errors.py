"""
Errors
======
Failures surfaced to whoever is importing a standings document.

Messages are written in Portuguese because they are shown as-is to the
site administrators on the upload screen.
"""

from __future__ import annotations


class StandingsError(Exception):
    """Base class for every extractor failure."""

    code = "standings_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StandingsParseError(StandingsError):
    """The text stream could not be turned into standings."""

    code = "parse_error"


class HeaderNotFound(StandingsParseError):
    """The TOP10 anchor never appears, so the layout is unrecognized."""

    code = "header_not_found"

    def __init__(self):
        super().__init__(
            "Formato de PDF não reconhecido: cabeçalho da tabela não encontrado"
        )


class NoStandingsFound(StandingsParseError):
    """The header matched but no row could be decoded after it."""

    code = "no_standings_found"

    def __init__(self):
        super().__init__("Nenhum dado de classificação encontrado no PDF")


class ExtractionError(StandingsError):
    """The PDF could not be opened or its text could not be read."""

    code = "extraction_failed"

    def __init__(self, reason: str):
        super().__init__(f"Falha ao processar PDF: {reason}")
        self.reason = reason
