"""
Qualification rules: repository over MongoDB and threshold resolution
"""
import logging
import math
from typing import Any, Dict, Mapping, NamedTuple

from pymongo.errors import PyMongoError

from ..errors import RuleLoadError

logger = logging.getLogger(__name__)

RuleSet = Dict[str, str]

DEFAULT_MAX_MONTHLY_INCOME = 30000
DEFAULT_MAX_GWA = 3.0


class RuleThresholds(NamedTuple):
    max_monthly_income: float
    max_gwa: float


def _coerce(rules: Mapping[str, Any], key: str, default: float, cast) -> float:
    value = rules.get(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        number = float(str(value).strip())
        if not math.isfinite(number):
            raise ValueError("not finite")
        return cast(number)
    except (ValueError, OverflowError):
        logger.warning(f"Rule {key}={value!r} is not numeric, using default {default}")
        return default


def resolve_thresholds(rules: Mapping[str, Any]) -> RuleThresholds:
    """
    Resolve the numeric thresholds used by every evaluator

    Missing or non-numeric keys fall back to the defaults. The rule set
    itself is never modified.
    """
    return RuleThresholds(
        max_monthly_income=_coerce(rules, "max_monthly_income", DEFAULT_MAX_MONTHLY_INCOME, int),
        max_gwa=_coerce(rules, "max_gwa", DEFAULT_MAX_GWA, float),
    )


class RuleRepository:
    """Reads the configured scholarship rules on every call"""

    def __init__(self, collection):
        # motor AsyncIOMotorCollection holding {rule_key, rule_value, description}
        self.collection = collection

    async def load_all(self) -> RuleSet:
        """Fold all rule rows into a key -> value mapping (last write wins)"""
        rules: RuleSet = {}
        try:
            cursor = self.collection.find(
                {}, {"_id": 0, "rule_key": 1, "rule_value": 1, "description": 1}
            ).sort("_id", 1)
            async for doc in cursor:
                key = doc.get("rule_key")
                if not key:
                    continue
                rules[key] = str(doc.get("rule_value", ""))
        except PyMongoError as e:
            logger.error(f"Failed to load scholarship rules: {e}")
            raise RuleLoadError(f"Rule store unavailable: {e}") from e

        logger.info(f"Loaded {len(rules)} scholarship rules")
        return rules
