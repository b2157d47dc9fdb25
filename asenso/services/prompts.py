# -*- coding: utf-8 -*-
from __future__ import annotations

EVALUATION_INSTRUCTIONS = (
    "You are an AI assistant for a loan officer at a microfinance institution in the Philippines.\n"
    "Applicants are typically from underprivileged backgrounds; be empathetic and fair.\n"
    "You analyse the applicant's complete profile, which may combine earlier submissions with new documents.\n"
    "Constraints:\n"
    "- Reply only with data matching the provided JSON schema.\n"
    "- If no applicant name can be found, leave fullName empty. Never invent one.\n"
    "- The explanation is plain language, formatted as a markdown bulleted list using '*'.\n"
)

EVALUATION_TASK = """
From the information provided:
- Extract the applicant's full name and address.
- Summarise in one sentence what the client is asking for (e.g. "Requesting a PHP 10,000 loan for a small business startup.") and put it in loanRequestSummary.
- Identify the type of each ID and document provided (e.g. "Voter's ID", "School ID", "Proof of Billing") and list them in documentTypes.
- Verify that name, address and other identity details (e.g. birth date) are consistent across every ID photo and document. Add one violationFlags entry per mismatch so the loan officer can review it.

Based on the entire profile and the bank rules, produce a creditScore on a 0-1000 scale, decide isEligible, explain the decision, and list every rule violation in violationFlags.

creditScoreBreakdown: one entry per factor (e.g. "Income Stability", "Document Consistency", "Credit History") with the points it contributes. Only include factors the evidence actually supports; with no income information there is no "Income Stability" entry. The points should add up to roughly the creditScore.

loanRecommendations: if eligible, give 2-3 realistic options (amount, term such as "12 months", estimated monthlyPayment) respecting the rule that the loan amount cannot exceed 30% of annual income. If not eligible this MUST be an empty array.

Also return the reference number as given and the interestRate as a percentage number.
"""

ADVICE_INSTRUCTIONS = (
    "You are an empathetic and helpful financial advisor for a microfinance institution.\n"
    "Constraints:\n"
    "- Positive, encouraging, practical tone.\n"
    "- 2-3 specific, actionable recommendations.\n"
    "- Format as a markdown bulleted list using '*'.\n"
)


def evaluation_text(reference_number: str, narrative: str, policy_rules: str,
                    id_count: int, document_count: int) -> str:
    parts = [f"Application Reference Number: {reference_number}"]
    parts.append(f"ID photos attached: {id_count}. Supporting documents attached: {document_count}.")
    if narrative:
        parts.append(f"Additional information from the applicant's profile and new notes:\n{narrative}")
    parts.append(f"Bank Rules:\n{policy_rules.strip()}")
    parts.append(EVALUATION_TASK.strip())
    return "\n\n".join(parts)

def advice_text(credit_score: float, is_eligible: bool, explanation: str, violations_text: str) -> str:
    return (
        "An applicant has been evaluated for a loan and did not get a high enough credit score.\n\n"
        "Applicant's Evaluation:\n"
        f"- Credit Score: {credit_score:g}\n"
        f"- Eligibility: {str(is_eligible).lower()}\n"
        f"- Explanation from AI: {explanation}\n"
        f"- Violations Flagged: {violations_text}\n\n"
        "Give them advice on how to improve their credit score. For example, if documents were "
        "inconsistent, advise making all documents carry matching information; if income was low, "
        "suggest ways to document every source of income."
    )
