"""Prompt templates for AI statement extraction."""

from typing import Optional

from statement_planner.models.bank import BankProfile

# System prompt for statement extraction
EXTRACTION_SYSTEM_PROMPT = """You are a credit card statement reader. \
Your job is to transcribe every line item of an Argentine credit card \
statement into structured data.

Guidelines:
1. Extract the statement CLOSING date (cierre) and DUE date (vencimiento)
2. Extract every line item: purchases, installments, taxes, fees and payments
3. Amounts are positive numbers in the statement currency; credits are negative
4. Dates are written as they appear (e.g. "15-Mar-24" or "15/03/2024")
5. Line types:
   - PURCHASE: a single charge
   - INSTALLMENT: one installment of a series (CUOTA column like "03/06")
   - TAX_FEE: taxes, stamp duties, interest, maintenance and commissions
   - PAYMENT: payments received by the bank
6. Copy the raw text of the CUOTA/PLAN column into "plan" unchanged

Response format: Raw JSON only - no markdown code blocks, no explanation outside the JSON."""


def build_extraction_prompt(bank: BankProfile, plan_keyword: Optional[str] = None) -> str:
    """Build the user prompt sent along with a statement.

    Args:
        bank: Bank profile the statement belongs to.
        plan_keyword: The bank's named installment plan (e.g. "ZETA"), if any.

    Returns:
        Formatted prompt string.
    """
    hints = []
    if bank.columns:
        hints.append(f"- Statement columns: {', '.join(bank.columns)}")
    if bank.closing_date_keywords:
        hints.append(f"- The closing date is labeled: {bank.closing_date_keywords}")
    if bank.due_date_keywords:
        hints.append(f"- The due date is labeled: {bank.due_date_keywords}")
    if bank.currency_symbol:
        hints.append(f"- Currency symbol: {bank.currency_symbol}")
    if plan_keyword:
        hints.append(
            f'- If the CUOTA/PLAN column says "{plan_keyword.title()}", '
            f"return that text in the 'plan' field"
        )
    hint_text = "\n".join(hints) if hints else "- No format hints available"

    return f"""Extract this {bank.name} statement.

Format hints:
{hint_text}

Respond with JSON only:
{{"closingDate": "...", "dueDate": "...", "transactions": [
  {{"date": "...", "detail": "...", "amount": 0.0, "type": "PURCHASE|INSTALLMENT|TAX_FEE|PAYMENT",
    "plan": "...", "installmentCurrent": 1, "installmentTotal": 1}}
]}}"""


# System prompt for bank format analysis
FORMAT_SYSTEM_PROMPT = """You are analyzing the layout of a credit card \
statement so that later statements of the same bank can be read reliably.

Response format: Raw JSON only - no markdown code blocks, no explanation outside the JSON."""


FORMAT_USER_PROMPT = """Describe this statement's format:
1. name: the bank or card name
2. columns: the line item column headers, in order
3. currencySymbol: the main currency symbol
4. closingDateKeywords: the label next to the closing date
5. dueDateKeywords: the label next to the due date

Respond with JSON only:
{"name": "...", "columns": ["..."], "currencySymbol": "$", \
"closingDateKeywords": "...", "dueDateKeywords": "..."}"""
