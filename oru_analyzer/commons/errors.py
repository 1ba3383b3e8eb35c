class ORUAnalyzerError(Exception):
    """Base de todos los errores del analizador."""


class ParseError(ORUAnalyzerError):
    """Mensaje ORU estructuralmente inválido (sin segmentos, sin paciente o sin médico)."""


class ReferenceDataError(ORUAnalyzerError):
    """Dataset de referencia ausente o ilegible. Solo se lanza al cargar."""
