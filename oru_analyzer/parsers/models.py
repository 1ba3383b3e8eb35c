# ===============================
# File: oru_analyzer/parsers/models.py
# ===============================
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class PatientInfo:
    name: str
    dob: str  # YYYY-MM-DD (o tal cual si no venía en YYYYMMDD)
    gender: str
    id: str


@dataclass(frozen=True)
class DoctorInfo:
    name: str
    provider_id: str


@dataclass
class RawResult:
    code: str
    name: str
    value: str
    units: str
    reference_range: str
    abnormal_flag: str = ""


@dataclass
class TestGroup:
    __test__ = False  # no es una clase de pytest

    name: str
    results: List[RawResult] = field(default_factory=list)


@dataclass
class ORUMessage:
    patient: PatientInfo
    doctor: DoctorInfo
    groups: List[TestGroup]
    warnings: List[Dict] = field(default_factory=list)

    def result_count(self) -> int:
        return sum(len(g.results) for g in self.groups)

    def group(self, name: str) -> Optional[TestGroup]:
        return next((g for g in self.groups if g.name == name), None)
