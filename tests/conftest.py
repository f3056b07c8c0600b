from pathlib import Path

import pytest

from fisoku.engine import ReceiptEngine
from fisoku.rules.loader import RuleSet


RULES_DIR = Path(__file__).resolve().parents[1] / "data" / "rules"


@pytest.fixture(scope="session")
def ruleset() -> RuleSet:
    return RuleSet.load_from_dir(RULES_DIR)


@pytest.fixture(scope="session")
def engine(ruleset: RuleSet) -> ReceiptEngine:
    return ReceiptEngine(ruleset)
