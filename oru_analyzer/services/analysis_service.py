# oru_analyzer/services/analysis_service.py
from datetime import date
from typing import List, Optional

from loguru import logger

from oru_analyzer.commons.types import AbnormalResult, DiagnosticResult, DoctorSummary, PatientSummary
from oru_analyzer.parsers.models import ORUMessage
from oru_analyzer.services.evaluator import RangeEvaluator, calculate_age
from oru_analyzer.services.resolver import MetricResolver


class AnalysisService:
    def __init__(self, resolver: MetricResolver, evaluator: RangeEvaluator):
        self.resolver = resolver
        self.evaluator = evaluator

    def analyze(self, msg: ORUMessage, today: Optional[date] = None) -> DiagnosticResult:
        age = calculate_age(msg.patient.dob, today)
        gender = (msg.patient.gender or "").upper()
        if age is None:
            logger.warning(f"Fecha de nacimiento no interpretable '{msg.patient.dob}'; sin filtro por edad")
        logger.debug(f"Paciente edad={age} sexo={gender}")

        abnormal: List[AbnormalResult] = []
        for group in msg.groups:
            for result in group.results:
                metric = self.resolver.resolve_result(result)
                ev = self.evaluator.evaluate(result, metric, age, gender)
                logger.debug(
                    f"{result.name}={result.value} {result.units} flag='{result.abnormal_flag}' "
                    f"-> anormal={ev.is_abnormal} alto_riesgo={ev.is_high_risk}"
                )
                if not ev.is_abnormal:
                    continue
                abnormal.append(
                    AbnormalResult(
                        test_name=result.name,
                        value=result.value,
                        units=result.units,
                        reference_range=result.reference_range,
                        is_high_risk=ev.is_high_risk,
                        group=group.name,
                    )
                )

        logger.info(
            f"Análisis de {msg.patient.name}: {len(abnormal)} anormal(es) "
            f"de {msg.result_count()} resultado(s)"
        )
        return DiagnosticResult(
            patient_info=PatientSummary(
                name=msg.patient.name, dob=msg.patient.dob, gender=msg.patient.gender, id=msg.patient.id
            ),
            doctor_info=DoctorSummary(name=msg.doctor.name, provider_id=msg.doctor.provider_id),
            abnormal_results=abnormal,
        )
