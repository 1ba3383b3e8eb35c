import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from loguru import logger

from oru_analyzer.parsers.models import RawResult
from oru_analyzer.reference.models import DiagnosticMetric

# Con métrica (y filtro por edad/sexo) solo estos flags cuentan como anormal
ABNORMAL_FLAGS = frozenset({"H", "L", "A", "*"})
# Sin métrica: solo el flag decide, con el conjunto amplio
FALLBACK_ABNORMAL_FLAGS = frozenset({"H", "L", "A", "HH", "LL", ">", "<", "+", "-"})

DEFAULT_HIGH_RISK_THRESHOLD = 0.5


@dataclass(frozen=True)
class Evaluation:
    is_abnormal: bool
    is_high_risk: bool
    eligible: bool = True


def to_number(raw: str) -> Optional[float]:
    try:
        num = float((raw or "").strip())
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def calculate_age(dob: str, today: Optional[date] = None) -> Optional[int]:
    """Edad en años cumplidos. None si la fecha no se puede interpretar."""
    dob = (dob or "").strip()
    birth = None
    for fmt, raw in (("%Y-%m-%d", dob), ("%Y%m%d", dob[:8])):
        try:
            birth = datetime.strptime(raw, fmt).date()
            break
        except ValueError:
            continue
    if birth is None:
        return None
    today = today or date.today()
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def _range_for(metric: DiagnosticMetric) -> Optional[Tuple[float, float]]:
    return metric.everlab_range or metric.standard_range


class RangeEvaluator:
    def __init__(self, high_risk_threshold: float = DEFAULT_HIGH_RISK_THRESHOLD):
        self.high_risk_threshold = high_risk_threshold

    def is_eligible(self, metric: DiagnosticMetric, age: Optional[int], gender: str) -> bool:
        if age is not None:
            if metric.min_age is not None and age < metric.min_age:
                logger.debug(f"{metric.name}: edad {age} < min_age {metric.min_age}")
                return False
            if metric.max_age is not None and age > metric.max_age:
                logger.debug(f"{metric.name}: edad {age} > max_age {metric.max_age}")
                return False
        if metric.gender and metric.gender != (gender or "").upper():
            logger.debug(f"{metric.name}: restringida a sexo {metric.gender}")
            return False
        return True

    def is_abnormal(self, result: RawResult, metric: Optional[DiagnosticMetric]) -> bool:
        """Asume que el filtro de elegibilidad ya se aplicó."""
        flag = (result.abnormal_flag or "").strip()
        if metric is None:
            return flag in FALLBACK_ABNORMAL_FLAGS

        if flag:
            return flag in ABNORMAL_FLAGS

        value = to_number(result.value)
        if value is None:
            return False

        if metric.everlab_range:
            lower, higher = metric.everlab_range
            return value < lower or value > higher
        if metric.standard_range:
            lower, higher = metric.standard_range
            return value < lower or value > higher
        return False

    def is_high_risk(self, result: RawResult, metric: Optional[DiagnosticMetric]) -> bool:
        if metric is None or not metric.high_risk:
            return False
        value = to_number(result.value)
        bounds = _range_for(metric)
        if value is None or bounds is None:
            return False
        lower, higher = bounds
        width = higher - lower
        if width <= 0:
            return False
        deviation = max(0.0, value - higher, lower - value)
        return deviation > width * self.high_risk_threshold

    def evaluate(
        self,
        result: RawResult,
        metric: Optional[DiagnosticMetric],
        age: Optional[int],
        gender: str,
    ) -> Evaluation:
        if metric is not None and not self.is_eligible(metric, age, gender):
            return Evaluation(is_abnormal=False, is_high_risk=False, eligible=False)
        return Evaluation(
            is_abnormal=self.is_abnormal(result, metric),
            is_high_risk=self.is_high_risk(result, metric),
        )
