# flake8: noqa
import pytest

from oru_analyzer.commons.errors import ParseError
from oru_analyzer.parsers.base import _split_fields
from oru_analyzer.parsers.oru import parse_oru
from oru_analyzer.parsers.segments import (
    decode_doctor,
    decode_patient,
    decode_provider_block,
    decode_result,
    normalize_unit,
)

FULL = """MSH|^~\\&|LAB|EVERLAB|||20240612083000||ORU^R01|MSG1|P|2.3.1
PID|1||394255555^^^NATA&2133&N||SMITH^JOHN^A^^MR||19700101|M
PV1|1|O|||||4466067B^SIMPSON^DIDI^^^DR
ORC|RE||394255555-C||CM|||||||1111^OTHER^DOC^^^PROF
OBR|1|||FBC^Full Blood Count
OBX|1|NM|718-7^Haemoglobin:||182|g/L|115-165|H|||F
OBX|2|NM|4537-7^E.S.R.||35|mm/h|0-20||||F
OBX|3|ST|NOTE^Comment||haemolysed||||||F
OBX|4|NM|2339-0^Random Glucose||250|mmol/l|70-180||||F
OBX|5|NM|ZZZ-9^Mystery Analyte||12|U|1-5||||F
"""

NO_PATIENT = """MSH|^~\\&|LAB|EVERLAB
ORC|RE|||||||||||9999^SMITH^JOHN^^^DR
OBX|1|NM|2345-7^Glucose||110|mg/dL|70-100|H
"""

NO_DOCTOR = """MSH|^~\\&|LAB|EVERLAB
PID|1||123||DOE^JANE||19900101|F
ORC|RE|||||||||||9999
OBX|1|NM|2345-7^Glucose||110|mg/dL|70-100|H
"""


def test_pid_decoding():
    p = decode_patient(_split_fields("PID|1||394255555^^^NATA&2133&N||SMITH^JOHN^A^^MR||19700101|m"))
    assert p.name == "John A Smith"
    assert p.dob == "1970-01-01"
    assert p.gender == "m"
    assert p.id == "394255555"


def test_pid_short_segment_gives_empty_fields():
    p = decode_patient(_split_fields("PID|1||77"))
    assert p.id == "77"
    assert p.name == "" and p.dob == "" and p.gender == ""


def test_provider_block_title_and_default():
    assert decode_provider_block("9999^SMITH^JOHN^^^DR").name == "Dr John Smith"
    assert decode_provider_block("9999^SMITH^JOHN^^^PROF").name == "Prof John Smith"
    doc = decode_provider_block("9999^SMITH")
    assert doc.name == "Dr Smith"
    assert doc.provider_id == "9999"
    assert decode_provider_block("9999^SMITH^JOHN", default_title="Doctor").name == "Doctor John Smith"


def test_provider_title_is_last_component():
    # algunos equipos envían el título antes de XCN-6
    assert decode_provider_block("77^HOUSE^GREG^^PROF").name == "Prof Greg House"
    assert decode_provider_block("77^HOUSE^GREG^DR").name == "Dr Greg House"
    assert decode_provider_block("77^HOUSE^GREG^^^").name == "Dr Greg House"


@pytest.mark.parametrize("block", ["", "9999", "^SMITH^JOHN", "9999^^JOHN"])
def test_provider_block_requires_id_and_last_name(block):
    assert decode_provider_block(block) is None


def test_orc_provider_field_positions():
    orc12 = _split_fields("ORC|RE|||||||||||4466067B^SIMPSON^DIDI^^^DR")
    orc11 = _split_fields("ORC|RE||||||||||9999^SMITH^JOHN^^^DR")
    assert decode_doctor("ORC", orc12).provider_id == "4466067B"
    assert decode_doctor("ORC", orc11).name == "Dr John Smith"


def test_pv1_attending_then_referring():
    attending = _split_fields("PV1|1|O|||||4466067B^SIMPSON^DIDI^^^DR|5555^REF^RITA")
    referring = _split_fields("PV1|1|O||||||5555^REF^RITA")
    assert decode_doctor("PV1", attending).name == "Dr Didi Simpson"
    assert decode_doctor("PV1", referring).provider_id == "5555"
    assert decode_doctor("PV1", _split_fields("PV1|1|O")) is None


def test_obx_non_numeric_is_skipped():
    assert decode_result(_split_fields("OBX|3|ST|NOTE^Comment||haemolysed||||||F")) is None
    assert decode_result(_split_fields("OBX|3||NOTE^Comment||12|U")) is None


def test_short_non_numeric_obx_is_silent():
    assert decode_result(_split_fields("OBX|1|ST|NOTE^Comment")) is None
    msg = parse_oru(FULL + "OBX|6|ST|NOTE^Comment\nOBX|7|TX|X\n")
    assert msg.result_count() == 4
    assert msg.warnings == []


def test_obx_incomplete_raises():
    with pytest.raises(ValueError):
        decode_result(_split_fields("OBX|1|NM|GLU^Glucose"))


def test_obx_name_units_and_flag():
    r = decode_result(_split_fields("OBX|1|NM|718-7^Haemoglobin:||182|g/l^UCUM|115-165|H|||F"))
    assert r.code == "718-7"
    assert r.name == "Haemoglobin"
    assert r.value == "182"
    assert r.units == "g/l"  # fuera de la tabla: se deja tal cual
    assert r.reference_range == "115-165"
    assert r.abnormal_flag == "H"


def test_obx_name_falls_back_to_code():
    r = decode_result(_split_fields("OBX|1|NM|GLU||5.1|mmol/l"))
    assert r.name == "GLU"
    assert r.units == "mmol/L"
    assert r.abnormal_flag == ""


def test_esr_forced_name_and_units():
    by_code = decode_result(_split_fields("OBX|2|NM|4537-7^Sed Rate||35|mm/h|0-20"))
    assert by_code.name == "E.S.R."
    assert by_code.units == "mm/hr"
    by_name = decode_result(_split_fields("OBX|2|NM|X1^ESR (Westergren)||35|mm|0-20"))
    assert by_name.units == "mm/hr"


@pytest.mark.parametrize(
    "raw, expected",
    [("mm/h", "mm/hr"), ("MMOL/L", "mmol/L"), ("mg/DL", "mg/dL"), ("IU/l", "IU/L"), ("ng/mL", "ng/mL"), ("", "")],
)
def test_normalize_unit(raw, expected):
    assert normalize_unit(raw) == expected


def test_parse_full_message_without_resolver():
    msg = parse_oru(FULL)
    assert msg.patient.name == "John A Smith"
    assert msg.patient.dob == "1970-01-01"
    # PV1 llega primero: el ORC posterior no lo sobreescribe
    assert msg.doctor.name == "Dr Didi Simpson"
    assert msg.doctor.provider_id == "4466067B"
    assert [g.name for g in msg.groups] == ["Other Tests"]
    assert [r.name for r in msg.groups[0].results] == [
        "Haemoglobin",
        "E.S.R.",
        "Random Glucose",
        "Mystery Analyte",
    ]
    assert msg.warnings == []


def test_last_patient_segment_wins():
    text = FULL.replace("MSH|", "PID|1||000||FIRST^PATIENT||20000101|F\nMSH|", 1)
    assert parse_oru(text).patient.id == "394255555"


def test_malformed_obx_is_recorded_and_skipped():
    text = FULL + "OBX|9|NM\n"
    msg = parse_oru(text)
    assert msg.result_count() == 4
    assert len(msg.warnings) == 1
    assert msg.warnings[0]["segment"] == "OBX|9|NM"


def test_missing_patient_raises():
    with pytest.raises(ParseError, match="Patient information not found"):
        parse_oru(NO_PATIENT)


def test_missing_doctor_raises():
    with pytest.raises(ParseError, match="Doctor information not found"):
        parse_oru(NO_DOCTOR)
