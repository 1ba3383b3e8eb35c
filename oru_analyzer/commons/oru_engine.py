from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from oru_analyzer.commons.types import DiagnosticResult, Settings
from oru_analyzer.parsers.models import ORUMessage
from oru_analyzer.parsers.oru import parse_oru
from oru_analyzer.reference.store import ReferenceData
from oru_analyzer.services.analysis_service import AnalysisService
from oru_analyzer.services.evaluator import RangeEvaluator
from oru_analyzer.services.resolver import MetricResolver


def load_settings(config_path_or_obj: Any = None) -> Settings:
    # Soportar rutas, dict ya cargado o nada (valores por defecto)
    if isinstance(config_path_or_obj, Settings):
        return config_path_or_obj
    if isinstance(config_path_or_obj, (str, Path)):
        with open(config_path_or_obj, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        settings = Settings.model_validate(raw)
        # data_dir relativo al archivo de configuración, no al cwd
        data_dir = Path(settings.paths.data_dir)
        if not data_dir.is_absolute():
            settings.paths.data_dir = str((Path(config_path_or_obj).parent / data_dir).resolve())
        return settings
    if isinstance(config_path_or_obj, dict):
        raw = config_path_or_obj
    else:
        raw = {}
    return Settings.model_validate(raw)


class OruEngine:
    """Facade: carga configuración y datos de referencia una vez y expone
    parse / analyze por mensaje. No guarda estado entre mensajes."""

    def __init__(self, config_path_or_obj: Any = None, reference: Optional[ReferenceData] = None):
        self.settings = load_settings(config_path_or_obj)
        rules = self.settings.rules
        self.reference = reference or ReferenceData.load(self.settings.paths.data_dir)
        self.resolver = MetricResolver(self.reference, fallback_group=rules.fallback_group)
        self.evaluator = RangeEvaluator(high_risk_threshold=rules.high_risk_threshold)
        self.analysis = AnalysisService(self.resolver, self.evaluator)

    def parse(self, text: str) -> ORUMessage:
        rules = self.settings.rules
        return parse_oru(
            text,
            resolver=self.resolver,
            default_doctor_title=rules.default_doctor_title,
            fallback_group=rules.fallback_group,
        )

    def analyze(self, text: str, today: Optional[date] = None) -> DiagnosticResult:
        return self.analysis.analyze(self.parse(text), today=today)

    def lookup(self, name: str, code: str = "") -> Dict:
        metric = self.resolver.resolve(name, code)
        return {
            "query": {"name": name, "code": code},
            "metric": metric.model_dump(by_alias=True) if metric else None,
            "group": self.resolver.group_name(metric),
        }
