"""
Decodificadores por tipo de segmento (PID, ORC/PV1, OBX).

Cada segmento llega ya partido por '|'. Las posiciones de campo de cada tipo
viven en una clase de índices para no repetir números mágicos en cada
llamada.
"""
from typing import List, Optional

from loguru import logger

from .base import COMP_SEP, _field, _split_comp, capitalize_name, format_date
from .models import DoctorInfo, PatientInfo, RawResult


class PID:
    ID = 3
    NAME = 5
    DOB = 7
    GENDER = 8


class OBX:
    VALUE_TYPE = 2
    IDENTIFIER = 3
    VALUE = 5
    UNITS = 6
    REF_RANGE = 7
    FLAG = 8


NUMERIC_VALUE_TYPE = "NM"

# ORC-12 es el médico solicitante; algunos equipos lo corren a 11 o 10.
# PV1-7 médico tratante, PV1-8 médico remitente.
PROVIDER_FIELDS = {
    "ORC": (12, 11, 10),
    "PV1": (7, 8),
}

# Bloque XCN: id^apellido^nombre^...^título; el título es el último componente
# no vacío después del nombre (XCN-6 en HL7, algunos equipos lo adelantan)
XCN_ID, XCN_LAST, XCN_FIRST = 0, 1, 2

UNIT_ALIASES = {
    "mm/h": "mm/hr",
    "mmol/l": "mmol/L",
    "umol/l": "umol/L",
    "iu/l": "IU/L",
    "u/l": "U/L",
    "g/dl": "g/dL",
    "mg/dl": "mg/dL",
}

# VSG (E.S.R.): el código LOINC se reporta con nombres y unidades variables
ESR_CODE = "4537-7"
ESR_NAME = "E.S.R."
ESR_UNITS = "mm/hr"
CODE_DISPLAY_NAMES = {ESR_CODE: ESR_NAME}
FORCED_UNITS_BY_CODE = {ESR_CODE: ESR_UNITS}
FORCED_UNITS_BY_NAME = ((ESR_NAME, ESR_UNITS), ("ESR", ESR_UNITS))


def normalize_unit(unit: str) -> str:
    if not unit:
        return ""
    return UNIT_ALIASES.get(unit.lower(), unit)


def decode_patient(fields: List[str]) -> PatientInfo:
    comp = _split_comp(_field(fields, PID.NAME))
    # apellido^nombre^segundo^sufijo^prefijo; el prefijo no va en el nombre
    last = comp[0] if len(comp) > 0 else ""
    first = comp[1] if len(comp) > 1 else ""
    middle = comp[2] if len(comp) > 2 else ""
    suffix = comp[3] if len(comp) > 3 else ""
    name = " ".join(p for p in (first, middle, last, suffix) if p.strip())

    pid_comp = _split_comp(_field(fields, PID.ID))
    return PatientInfo(
        name=capitalize_name(name),
        dob=format_date(_field(fields, PID.DOB)),
        gender=_field(fields, PID.GENDER),
        id=pid_comp[0] if pid_comp else "",
    )


def decode_provider_block(block: str, default_title: str = "Dr") -> Optional[DoctorInfo]:
    if not block or COMP_SEP not in block:
        return None
    parts = [p.strip() for p in block.split(COMP_SEP)]
    provider_id = parts[XCN_ID]
    last = parts[XCN_LAST]
    if not provider_id or not last:
        return None
    first = parts[XCN_FIRST] if len(parts) > XCN_FIRST else ""
    title = next((p for p in reversed(parts[XCN_FIRST + 1 :]) if p), default_title)
    name = " ".join(p for p in (title, first, last) if p)
    return DoctorInfo(name=capitalize_name(name), provider_id=provider_id)


def decode_doctor(seg_type: str, fields: List[str], default_title: str = "Dr") -> Optional[DoctorInfo]:
    for idx in PROVIDER_FIELDS.get(seg_type, ()):
        doctor = decode_provider_block(_field(fields, idx), default_title)
        if doctor:
            logger.debug(f"Médico encontrado en {seg_type}-{idx}: {doctor.name}")
            return doctor
    return None


def _test_name(code: str, comp: List[str]) -> str:
    if code in CODE_DISPLAY_NAMES:
        return CODE_DISPLAY_NAMES[code]
    default_name = comp[1].strip().rstrip(":").strip() if len(comp) > 1 else ""
    return default_name or code


def _forced_units(code: str, name: str) -> Optional[str]:
    if code in FORCED_UNITS_BY_CODE:
        return FORCED_UNITS_BY_CODE[code]
    for marker, units in FORCED_UNITS_BY_NAME:
        if marker in name:
            return units
    return None


def decode_result(fields: List[str]) -> Optional[RawResult]:
    """OBX -> RawResult. Devuelve None para tipos no numéricos (no es error)."""
    value_type = _field(fields, OBX.VALUE_TYPE)
    if value_type != NUMERIC_VALUE_TYPE:
        logger.debug(f"OBX no numérico ({value_type or 'vacío'}) omitido: {_field(fields, OBX.IDENTIFIER)}")
        return None
    if len(fields) <= OBX.VALUE:
        raise ValueError(f"OBX incompleto: {len(fields)} campos")

    comp = _split_comp(_field(fields, OBX.IDENTIFIER))
    code = comp[0].strip() if comp else ""
    name = _test_name(code, comp)

    units_comp = _split_comp(_field(fields, OBX.UNITS))
    units = normalize_unit(units_comp[0].strip() if units_comp else "")
    units = _forced_units(code, name) or units

    return RawResult(
        code=code,
        name=name,
        value=_field(fields, OBX.VALUE),
        units=units,
        reference_range=_field(fields, OBX.REF_RANGE),
        abnormal_flag=_field(fields, OBX.FLAG),
    )
