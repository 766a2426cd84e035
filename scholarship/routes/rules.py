"""
API routes for reading the scholarship rules
"""
from fastapi import APIRouter, Depends

from ..services import RuleRepository, resolve_thresholds
from .dependencies import get_rule_repository

router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("")
async def get_rules(repository: RuleRepository = Depends(get_rule_repository)):
    """
    Get the current rule set and the thresholds resolved from it
    """
    rules = await repository.load_all()
    thresholds = resolve_thresholds(rules)
    return {
        "rules": rules,
        "thresholds": {
            "max_monthly_income": thresholds.max_monthly_income,
            "max_gwa": thresholds.max_gwa,
        },
    }
