from pathlib import Path

import pytest

from oru_analyzer.commons.oru_engine import OruEngine
from oru_analyzer.reference.store import ReferenceData
from oru_analyzer.services.evaluator import RangeEvaluator
from oru_analyzer.services.resolver import MetricResolver

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(scope="session")
def reference():
    return ReferenceData.load(str(DATA_DIR))


@pytest.fixture
def resolver(reference):
    return MetricResolver(reference)


@pytest.fixture
def evaluator():
    return RangeEvaluator()


@pytest.fixture
def engine(reference):
    return OruEngine(reference=reference)
