from typing import Dict, List, Optional

from loguru import logger

from oru_analyzer.commons.errors import ParseError

from .base import _split_fields, split_segments
from .models import DoctorInfo, ORUMessage, PatientInfo, RawResult, TestGroup
from .segments import PROVIDER_FIELDS, decode_doctor, decode_patient, decode_result

FALLBACK_GROUP = "Other Tests"


def parse_oru(
    text: str,
    resolver=None,
    default_doctor_title: str = "Dr",
    fallback_group: str = FALLBACK_GROUP,
) -> ORUMessage:
    """
    Una pasada sobre los segmentos:
      - PID: el último gana.
      - ORC / PV1: el primer médico decodificado gana y no se sobreescribe.
      - OBX: se acumula en el grupo que indique el resolver (o `fallback_group`).
    Un OBX mal formado se omite y queda registrado en `warnings`.
    """
    segments = split_segments(text)
    logger.debug(f"Procesando {len(segments)} segmento(s)")

    patient: Optional[PatientInfo] = None
    doctor: Optional[DoctorInfo] = None
    groups: Dict[str, List[RawResult]] = {}
    warnings: List[Dict] = []

    for seg in segments:
        fields = _split_fields(seg)
        seg_type = fields[0].strip()
        try:
            if seg_type == "PID":
                patient = decode_patient(fields)
                logger.debug(f"Paciente: {patient.name} ({patient.id})")
            elif seg_type in PROVIDER_FIELDS:
                if doctor is None:
                    doctor = decode_doctor(seg_type, fields, default_doctor_title)
            elif seg_type == "OBX":
                result = decode_result(fields)
                if result is None:
                    continue
                group = resolver.group_name_for(result) if resolver else fallback_group
                groups.setdefault(group, []).append(result)
        except (IndexError, ValueError) as ex:
            logger.warning(f"Segmento {seg_type} omitido: {ex}")
            warnings.append({"segment": seg, "error": str(ex)})
            continue

    if patient is None:
        raise ParseError("Patient information not found in ORU message")
    if doctor is None:
        raise ParseError("Doctor information not found in ORU message")

    test_groups = [TestGroup(name=name, results=results) for name, results in groups.items()]
    msg = ORUMessage(patient=patient, doctor=doctor, groups=test_groups, warnings=warnings)
    logger.debug(f"{len(test_groups)} grupo(s), {msg.result_count()} resultado(s) numérico(s)")
    return msg
