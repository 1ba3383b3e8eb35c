from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # el contrato de salida usa camelCase (testName, isHighRisk, providerId...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatientSummary(_CamelModel):
    name: str
    dob: str
    gender: str
    id: str


class DoctorSummary(_CamelModel):
    name: str
    provider_id: str


class AbnormalResult(_CamelModel):
    test_name: str
    value: str
    units: str
    reference_range: str
    is_high_risk: bool
    group: str


class DiagnosticResult(_CamelModel):
    patient_info: PatientSummary
    doctor_info: DoctorSummary
    abnormal_results: List[AbnormalResult] = []

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent or None)


# --------- Settings (configs/settings.yaml) ----------
class PathsCfg(BaseModel):
    data_dir: str = "data"
    logs_root: str = "logs"


class LoggingCfg(BaseModel):
    level: str = "INFO"


class RulesCfg(BaseModel):
    high_risk_threshold: float = 0.5
    fallback_group: str = "Other Tests"
    default_doctor_title: str = "Dr"

    @field_validator("high_risk_threshold")
    @classmethod
    def _positive(cls, v: float):
        if v <= 0:
            raise ValueError("high_risk_threshold debe ser > 0")
        return v


class Settings(BaseModel):
    paths: PathsCfg = Field(default_factory=PathsCfg)
    logging: LoggingCfg = Field(default_factory=LoggingCfg)
    rules: RulesCfg = Field(default_factory=RulesCfg)
