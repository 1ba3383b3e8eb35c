from types import MappingProxyType
from typing import Dict, Optional

from loguru import logger

from oru_analyzer.parsers.models import RawResult
from oru_analyzer.parsers.oru import FALLBACK_GROUP
from oru_analyzer.reference.models import DiagnosticMetric
from oru_analyzer.reference.store import ReferenceData

# Nombres de pantalla que no coinciden con el nombre canónico ni con alias
SPECIAL_NAMES = {
    "E.S.R.": "Erythrocyte Sedimentation Rate",
}


class MetricResolver:
    """
    Resuelve un resultado (nombre / código OBX-3) a su DiagnosticMetric:
      1. nombre exacto de la métrica
      2. alias `oru_sonic_codes` (sin mayúsculas; el código puede contener el
         alias o al revés)
      3. tabla de casos especiales
    El índice de alias se arma una sola vez y no cambia.
    """

    def __init__(
        self,
        reference: ReferenceData,
        fallback_group: str = FALLBACK_GROUP,
        special_names: Optional[Dict[str, str]] = None,
    ):
        self.reference = reference
        self.fallback_group = fallback_group
        self.special_names = MappingProxyType(dict(SPECIAL_NAMES if special_names is None else special_names))
        self._aliases = tuple(
            (alias.lower(), metric)
            for metric in reference.all_metrics()
            for alias in metric.alias_codes
        )

    def _by_alias(self, key: str, partial: bool) -> Optional[DiagnosticMetric]:
        key = (key or "").strip().lower()
        if not key:
            return None
        for alias, metric in self._aliases:
            if alias == key or (partial and (alias in key or key in alias)):
                return metric
        return None

    def resolve(self, name: str, code: str = "") -> Optional[DiagnosticMetric]:
        metric = self.reference.lookup(name)
        if metric:
            return metric

        # primero coincidencia exacta de alias, después parcial (solo con el código)
        metric = self._by_alias(code, partial=False) or self._by_alias(name, partial=False)
        if metric is None:
            metric = self._by_alias(code, partial=True)
        if metric:
            logger.debug(f"'{name}' ({code}) resuelto por alias -> {metric.name}")
            return metric

        canonical = self.special_names.get(name)
        if canonical:
            metric = self.reference.lookup(canonical)
            if metric:
                logger.debug(f"'{name}' resuelto por caso especial -> {metric.name}")
                return metric

        logger.debug(f"Sin métrica para '{name}' ({code})")
        return None

    def resolve_result(self, result: RawResult) -> Optional[DiagnosticMetric]:
        return self.resolve(result.name, result.code)

    def group_name(self, metric: Optional[DiagnosticMetric]) -> str:
        if metric is None:
            return self.fallback_group
        if metric.diagnostic_groups:
            return metric.diagnostic_groups
        if metric.diagnostic:
            parent = self.reference.lookup_parent_diagnostic(metric.diagnostic)
            if parent and parent.diagnostic_groups:
                return parent.diagnostic_groups
        return metric.group or self.fallback_group

    def group_name_for(self, result: RawResult) -> str:
        return self.group_name(self.resolve_result(result))
