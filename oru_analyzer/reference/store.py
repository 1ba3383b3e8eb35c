from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Type, TypeVar

import pandas as pd
from loguru import logger
from pydantic import BaseModel, ValidationError

from oru_analyzer.commons.errors import ReferenceDataError

from .models import Condition, Diagnostic, DiagnosticGroup, DiagnosticMetric

M = TypeVar("M", bound=BaseModel)

METRICS_FILE = "diagnostic_metrics.csv"
DIAGNOSTICS_FILE = "diagnostics.csv"
GROUPS_FILE = "diagnostic_groups.csv"
CONDITIONS_FILE = "conditions.csv"


def _read_records(path: Path, model: Type[M], required: bool = True) -> List[M]:
    if not path.exists():
        if required:
            raise ReferenceDataError(f"Reference data file not found: {path}")
        logger.info(f"{path.name} no existe; se omite")
        return []
    try:
        # se lee como texto: los vacíos quedan como "" y no como NaN
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as ex:
        raise ReferenceDataError(f"Cannot read reference data file {path}: {ex}") from ex

    out = []
    for i, row in enumerate(df.to_dict(orient="records"), start=2):
        try:
            out.append(model.model_validate(row))
        except ValidationError as ve:
            raise ReferenceDataError(f"Invalid row {i} in {path.name}: {ve}") from ve
    return out


def _by_name(records: Iterable[M]) -> Dict[str, M]:
    return {r.name: r for r in records}


class ReferenceData:
    """
    Dataset de referencia de solo lectura (métricas, diagnósticos, grupos y
    condiciones). Se carga una vez al arrancar y se comparte entre peticiones.
    """

    def __init__(
        self,
        metrics: Iterable[DiagnosticMetric],
        diagnostics: Iterable[Diagnostic] = (),
        groups: Iterable[DiagnosticGroup] = (),
        conditions: Iterable[Condition] = (),
    ):
        self._metrics = MappingProxyType(_by_name(metrics))
        self._diagnostics = MappingProxyType(_by_name(diagnostics))
        self._groups = MappingProxyType(_by_name(groups))
        self._conditions = MappingProxyType(_by_name(conditions))

    @classmethod
    def load(cls, data_dir: str) -> "ReferenceData":
        base = Path(data_dir)
        if not base.is_dir():
            raise ReferenceDataError(f"Reference data directory not found: {base}")
        ref = cls(
            metrics=_read_records(base / METRICS_FILE, DiagnosticMetric),
            diagnostics=_read_records(base / DIAGNOSTICS_FILE, Diagnostic),
            groups=_read_records(base / GROUPS_FILE, DiagnosticGroup, required=False),
            conditions=_read_records(base / CONDITIONS_FILE, Condition, required=False),
        )
        logger.info(
            f"Datos de referencia cargados desde {base}: {len(ref._metrics)} métricas, "
            f"{len(ref._diagnostics)} diagnósticos, {len(ref._groups)} grupos, "
            f"{len(ref._conditions)} condiciones"
        )
        return ref

    # -------- contrato usado por el resolver --------
    def lookup(self, name: str) -> Optional[DiagnosticMetric]:
        return self._metrics.get(name)

    def lookup_parent_diagnostic(self, name: str) -> Optional[Diagnostic]:
        return self._diagnostics.get(name)

    def all_metrics(self) -> List[DiagnosticMetric]:
        return list(self._metrics.values())

    # -------- consultas adicionales --------
    def get_diagnostic_group(self, name: str) -> Optional[DiagnosticGroup]:
        return self._groups.get(name)

    def metrics_for_diagnostic(self, name: str) -> List[DiagnosticMetric]:
        diagnostic = self._diagnostics.get(name)
        if not diagnostic:
            return []
        return [self._metrics[n] for n in diagnostic.metric_names if n in self._metrics]

    def conditions_for_metric(self, metric_name: str) -> List[Condition]:
        return [c for c in self._conditions.values() if metric_name in c.diagnostic_metrics]
