"""
Builds the instruction and output schema sent to the evaluation engine
"""
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel

from ..models import EvaluationResult, IncomeVerificationContext
from .rule_repository import resolve_thresholds

logger = logging.getLogger(__name__)


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def format_peso(amount: float) -> str:
    """Format an amount as pesos with thousands separators"""
    if float(amount).is_integer():
        return f"₱{amount:,.0f}"
    return f"₱{amount:,.2f}"


class EvaluationRequest(BaseModel):
    system_instruction: str
    user_instruction: str
    response_schema: Dict[str, Any]


class EvaluationRequestBuilder:
    """Composes document text, rules and income claims into one instruction"""

    SYSTEM_PROMPT = (
        "You are a precise document evaluator. Always respond with valid JSON only. "
        "No markdown, no backticks."
    )

    USER_PROMPT_TEMPLATE = """You are a scholarship application evaluator for a Philippine university scholarship program.

SCHOLARSHIP QUALIFICATION RULES:
{rules_text}

NOTES ON GRADING SYSTEM:
- Philippine GWA scale: 1.0 = highest, 5.0 = failed
- Lower number = better. max_gwa is a MAXIMUM, not a minimum: the applicant passes if their GWA is {max_gwa} OR BETTER (lower)
- So if max_gwa = {max_gwa}, a GWA of 1.0, 1.5, 2.0, 2.5 or {max_gwa} passes, anything above {max_gwa} fails
- Monthly income is in Philippine Pesos (PHP / ₱)
{income_section}
REPORT CARD / GRADES DOCUMENT TEXT (for GWA extraction):
\"\"\"
{document_text}
\"\"\"

ANALYSIS INSTRUCTIONS:
1. Extract the monthly income figures (return the numeric value only, e.g. 15000, not "₱15,000")
2. Calculate TOTAL HOUSEHOLD INCOME = mother_income + father_income
3. Extract the GWA from the report card (look for "GWA", "General Weighted Average" or the overall grade)
4. Extract the applicant's name, enrollment status, school and course when present
5. Determine if the applicant QUALIFIES:
   - Income check: PASSES if total_income <= {max_income}
   - GWA check: PASSES if gwa <= {max_gwa} (remember: 1.0 is best, 5.0 is worst)
   - Overall: "qualified" is true only if BOTH checks pass
   - Do NOT pass a check when its value is null
6. List every failed criterion in "disqualification_reasons"
7. Rate your confidence in the extracted facts and the decision from 0 to 100

Respond with exactly one JSON object matching this structure. No prose, no markdown fencing:
{{
  "qualified": true or false,
  "extracted_data": {{
    "applicant_name": "string or null",
    "mother_income": number or null,
    "father_income": number or null,
    "total_income": number or null,
    "gwa": number or null,
    "enrollment_status": "string or null",
    "school": "string or null",
    "course": "string or null"
  }},
  "evaluation": {{
    "income_check": {{
      "passed": true or false,
      "value_found": number or null (total income),
      "mother_value_found": number or null,
      "father_value_found": number or null,
      "total_value_found": number or null,
      "threshold": {max_income},
      "income_verified": true or false,
      "reason": "what income values you found and whether the total is within the threshold"
    }},
    "gwa_check": {{
      "passed": true or false,
      "value_found": number or null,
      "threshold": {max_gwa},
      "reason": "concise explanation"
    }}
  }},
  "disqualification_reasons": ["string"],
  "confidence_score": integer 0-100,
  "ocr_quality": "good" or "fair" or "poor",
  "notes": "any important observations"
}}"""

    INCOME_SECTION_TEMPLATE = """
INCOME VERIFICATION REQUIRED:
The user claimed:
- Mother's monthly income: {claimed_mother}
- Father's monthly income: {claimed_father}
- Combined income: {claimed_total}

YOU MUST:
1. Extract the mother's income from the MOTHER'S INCOME CERTIFICATE TEXT below
2. Extract the father's income from the FATHER'S INCOME CERTIFICATE TEXT below
3. Calculate the TOTAL combined household income
4. Verify if the extracted incomes match what the user claimed
5. Check if the total income is within the threshold ({max_income})

MOTHER'S INCOME CERTIFICATE TEXT:
\"\"\"
{mother_text}
\"\"\"

FATHER'S INCOME CERTIFICATE TEXT:
\"\"\"
{father_text}
\"\"\"

Look for salary amounts, monthly income figures, compensation details and any PHP/₱ amounts
that represent monthly earnings (e.g. "Monthly Salary: ₱15,000", "Income: PHP 12000",
"Gross Monthly Income: 18,000.00").

If you cannot find income information in a certificate, set that parent's income to null.
If BOTH certificates have no income information, set "income_verified" to false and
"passed" to false for the income check.
"""

    def build(
        self,
        text: str,
        rules: Mapping[str, Any],
        income_context: Optional[IncomeVerificationContext] = None,
    ) -> EvaluationRequest:
        """Build the full instruction for one evaluation"""
        thresholds = resolve_thresholds(rules)
        max_income = _format_amount(thresholds.max_monthly_income)
        max_gwa = str(float(thresholds.max_gwa))

        income_section = ""
        document_text = text
        if income_context is not None:
            income_section = self.INCOME_SECTION_TEMPLATE.format(
                claimed_mother=format_peso(income_context.mother_income),
                claimed_father=format_peso(income_context.father_income),
                claimed_total=format_peso(income_context.claimed_total),
                max_income=max_income,
                mother_text=income_context.mother_text,
                father_text=income_context.father_text,
            )
            document_text = income_context.report_text

        user_prompt = self.USER_PROMPT_TEMPLATE.format(
            rules_text=self.render_rules(rules),
            income_section=income_section,
            document_text=document_text,
            max_income=max_income,
            max_gwa=max_gwa,
        )

        logger.debug(f"Built evaluation prompt with {len(user_prompt)} characters")
        return EvaluationRequest(
            system_instruction=self.SYSTEM_PROMPT,
            user_instruction=user_prompt,
            response_schema=EvaluationResult.model_json_schema(),
        )

    @staticmethod
    def render_rules(rules: Mapping[str, Any]) -> str:
        """Render every rule as a `- key: value` line"""
        return "\n".join(f"- {key}: {value}" for key, value in rules.items())
