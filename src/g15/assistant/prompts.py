"""Prompt text for the G15 finance assistant."""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from typing import Any

NO_DATA_NOTE = "Note: No financial data is available for this user yet."

BUSY_MESSAGE = "The AI assistant is busy right now. Please try again in a moment."

WELCOME_MESSAGE = (
    "Hello! I'm your G15 AI financial assistant. How can I help you with your finances today?"
)

WELCOME_SUGGESTIONS = [
    "How do I create a budget?",
    "What are good saving strategies?",
    "How can I reduce my expenses?",
]

SYSTEM_PROMPT_TEMPLATE = """You are G15, an intelligent financial assistant for the G15 Finance app. You provide personalized advice based on the user's financial situation and goals. Your responses should be:

1. CONCISE - Keep responses brief and to the point
2. PRACTICAL - Offer specific, actionable advice
3. PERSONALIZED - Reference the user's specific financial data when available
4. CLEAR - Use simple language to explain financial concepts
5. SUPPORTIVE - Be encouraging and positive about financial progress

Here is information about the user's current financial situation:

{context}

When responding to the user:
- If they ask about their goals or budget, reference the specific data provided above
- If they ask for advice, offer personalized suggestions based on their data
- If they want to add/update/delete financial records, explain that this must be done through the app interface
- If they ask about something you don't have data for, be honest and suggest they enter that information in the app
- DO NOT make up information about their finances that isn't provided in the context above

Formatting markers the app renders for the user:
- [PROGRESS:name:current:target] shows a progress bar for a goal, e.g. [PROGRESS:Vacation:250:1000]
- [ACTION:text:url] shows a link to a page of the app, e.g. [ACTION:Open your budget:/budget]"""

BUDGET_SUGGESTION_PROMPT = """You are G15, a budgeting assistant. Suggest a monthly budget amount for each of the user's budget categories, based on their recent spending.

Budget categories (JSON):
{categories}

Recent transactions (JSON):
{transactions}

Respond with ONLY a JSON array, no prose, in the form:
[{{"categoryId": <category id>, "suggestedBudget": <non-negative number>}}]"""


def _amount(value: Any) -> float:
    """Numeric value of a client-supplied amount; anything unreadable counts as 0."""
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _money(value: Any) -> str:
    return f"{_amount(value):.2f}"


def _records(items: Any) -> list[Mapping[str, Any]]:
    # Context may come straight from a request body.
    if not isinstance(items, (list, tuple)):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def format_financial_context(
    goals: Iterable[Mapping[str, Any]] = (),
    categories: Iterable[Mapping[str, Any]] = (),
    transactions: Iterable[Mapping[str, Any]] = (),
) -> str:
    """Render the user's goals, budgets and transactions as prompt text.

    Entries that are not mappings are skipped.
    """
    sections: list[str] = []

    goal_lines = []
    for goal in _records(goals):
        target = _amount(goal.get("target_amount"))
        current = _amount(goal.get("current_amount"))
        pct = current / target * 100 if target else 0.0
        goal_lines.append(
            f"- {goal.get('name')}: ${_money(current)} of ${_money(target)} ({pct:.1f}% complete)"
        )
    if goal_lines:
        sections.append("Financial Goals:\n" + "\n".join(goal_lines))

    category_lines = [
        f"- {c.get('name')}: ${_money(c.get('budget_amount'))}" for c in _records(categories)
    ]
    if category_lines:
        sections.append("Budget Categories:\n" + "\n".join(category_lines))

    tx_lines = []
    for tx in _records(transactions):
        kind = "Income" if tx.get("type") == "income" else "Expense"
        line = f"- {tx.get('date')}: {kind} of ${_money(abs(_amount(tx.get('amount'))))}"
        if tx.get("category"):
            line += f" in {tx['category']}"
        tx_lines.append(line)
    if tx_lines:
        sections.append("Recent Transactions:\n" + "\n".join(tx_lines))

    if not sections:
        return NO_DATA_NOTE
    return "\n\n".join(sections)


def build_system_prompt(context_text: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(context=context_text)


def build_budget_suggestion_prompt(
    categories: list[dict[str, Any]],
    transactions: list[dict[str, Any]],
) -> str:
    return BUDGET_SUGGESTION_PROMPT.format(
        categories=json.dumps(categories, default=str),
        transactions=json.dumps(transactions, default=str),
    )
