import re
from typing import List

from loguru import logger

from oru_analyzer.commons.errors import ParseError

FIELD_SEP = "|"
COMP_SEP = "^"

SEGMENT_TYPES = ("MSH", "PID", "PV1", "ORC", "OBR", "OBX")
_SEGMENT_MARKER = re.compile(r"(?:%s)\|" % "|".join(SEGMENT_TYPES))


def _split_fields(seg: str) -> List[str]:
    return seg.split(FIELD_SEP)


def _split_comp(val: str) -> List[str]:
    return val.split(COMP_SEP) if val else []


def _field(fields: List[str], idx: int) -> str:
    return fields[idx].strip() if len(fields) > idx else ""


def split_segments(text: str) -> List[str]:
    """
    Divide el mensaje en segmentos.
    - Varias líneas: cada línea es un segmento.
    - Una sola línea (mensaje "aplanado"): se re-segmenta buscando los
      marcadores MSH|, PID|, PV1|, ORC|, OBR|, OBX|. Si no hay ninguno,
      último recurso: partir la línea por '|'.
    """
    lines = [line for line in re.split(r"\r?\n", text or "") if line.strip()]

    if len(lines) == 1:
        line = lines[0]
        starts = [m.start() for m in _SEGMENT_MARKER.finditer(line)]
        if starts:
            bounds = starts[1:] + [len(line)]
            segments = [line[a:b] for a, b in zip(starts, bounds)]
            logger.debug(f"Línea única re-segmentada en {len(segments)} segmento(s)")
        else:
            logger.debug("Sin marcadores de segmento; se parte la línea por '|'")
            segments = [p for p in line.split(FIELD_SEP) if p.strip()]
    else:
        segments = lines

    # quita CR sueltos y espacios al final de cada segmento
    segments = [s.strip() for s in segments if s.strip()]
    if not segments:
        raise ParseError("No segments found in ORU message")
    return segments


def format_date(value: str) -> str:
    """YYYYMMDD -> YYYY-MM-DD; cualquier otra longitud se devuelve sin cambios."""
    if len(value) != 8:
        return value
    return f"{value[0:4]}-{value[4:6]}-{value[6:8]}"


def capitalize_name(value: str) -> str:
    # "SMITH" -> "Smith", "o'NEIL" -> "O'neil"; respeta espacios internos
    return " ".join(w.capitalize() for w in value.split())
