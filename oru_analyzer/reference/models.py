# oru_analyzer/reference/models.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = ""
    name: str
    code: str = ""
    description: str = ""


def _split_list(raw: str, sep: str) -> List[str]:
    return [p.strip() for p in (raw or "").split(sep) if p.strip()]


class DiagnosticMetric(_Record):
    group: str = ""
    high_risk: bool = Field(False, alias="highRisk")
    oru_sonic_codes: str = ""
    diagnostic: str = ""
    diagnostic_groups: str = ""
    units: str = ""
    standard_lower: Optional[float] = None
    standard_higher: Optional[float] = None
    everlab_lower: Optional[float] = None
    everlab_higher: Optional[float] = None
    min_age: Optional[float] = None
    max_age: Optional[float] = None
    gender: Optional[Literal["M", "F"]] = None

    @field_validator("high_risk", mode="before")
    @classmethod
    def _literal_true(cls, v):
        # en el CSV solo el literal "true" cuenta como verdadero
        if isinstance(v, bool):
            return v
        return str(v or "").strip() == "true"

    @field_validator(
        "standard_lower",
        "standard_higher",
        "everlab_lower",
        "everlab_higher",
        "min_age",
        "max_age",
        mode="before",
    )
    @classmethod
    def _blank_is_none(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def _any_gender(cls, v):
        v = str(v or "").strip().upper()
        if v in ("", "ANY"):
            return None
        return v

    @property
    def alias_codes(self) -> List[str]:
        return _split_list(self.oru_sonic_codes, ";")

    @property
    def everlab_range(self):
        if self.everlab_lower is None or self.everlab_higher is None:
            return None
        return self.everlab_lower, self.everlab_higher

    @property
    def standard_range(self):
        if self.standard_lower is None or self.standard_higher is None:
            return None
        return self.standard_lower, self.standard_higher


class Diagnostic(_Record):
    group: str = ""
    diagnostic_groups: str = ""
    diagnostic_metrics: str = ""

    @property
    def metric_names(self) -> List[str]:
        return _split_list(self.diagnostic_metrics, ",")


class DiagnosticGroup(_Record):
    diagnostics: str = ""
    diagnostic_metrics: str = ""

    @property
    def metric_names(self) -> List[str]:
        return _split_list(self.diagnostic_metrics, ",")


class Condition(_Record):
    diagnostic_metrics: List[str] = []

    @field_validator("diagnostic_metrics", mode="before")
    @classmethod
    def _split(cls, v):
        if isinstance(v, str):
            return _split_list(v, ",")
        return v or []
