"""
Prefix-template grammar for numbering sequences.

A template is literal text with ``{token}`` substitutions, e.g.
``{customer_code}/INV/{year}/{month}/``.  The formatted document code is the
substituted template followed by the zero-padded counter:

    CUST001/INV/2024/12/0042

Everything here is pure; the database side lives in sequence_service.
"""
import re
from datetime import date
from typing import Mapping

from app.core.errors import MissingContextError

TOKEN_PATTERN = re.compile(r"\{(\w+)\}")

DEFAULT_COUNTER_WIDTH = 4

# token name -> (label, example value); grouped the way the template builder shows them
TOKEN_GROUPS: dict[str, dict[str, tuple[str, str]]] = {
    "customer": {
        "customer_code": ("Customer Code", "CUST001"),
        "customer_name": ("Customer Name", "PT Customer"),
        "customer_type": ("Customer Type", "company"),
    },
    "project": {
        "project_code": ("Project Code", "PRJ001"),
        "project_name": ("Project Name", "Website Development"),
    },
    "company": {
        "company_code": ("Company Code", "COMP001"),
        "company_name": ("Company Name", "PT Perusahaan"),
    },
    "vendor": {
        "vendor_code": ("Vendor Code", "VEND001"),
        "vendor_name": ("Vendor Name", "PT Supplier"),
    },
    "user": {
        "user_code": ("User Code", "USR001"),
        "user_name": ("User Name", "John Doe"),
        "department": ("Department", "Sales"),
        "position": ("Position", "Manager"),
        "sales_rep": ("Sales Rep Code", "SR001"),
    },
    "date": {
        "year": ("Year", "2024"),
        "month": ("Month", "12"),
        "day": ("Day", "31"),
    },
}

DATE_TOKENS = frozenset(TOKEN_GROUPS["date"])

ALLOWED_TOKENS = frozenset(name for group in TOKEN_GROUPS.values() for name in group)

EXAMPLE_VALUES: dict[str, str] = {
    name: example
    for group in TOKEN_GROUPS.values()
    for name, (_label, example) in group.items()
    if name not in DATE_TOKENS
}

# Literal snippets the template builder can insert; not substitutions.
STATIC_SNIPPETS: dict[str, str] = {
    "INV": "INV (Invoice)",
    "SO": "SO (Sales Order)",
    "PO": "PO (Purchase Order)",
    "/": "Slash Separator",
    "-": "Dash Separator",
}

# (label, template, category)
TEMPLATE_PRESETS: list[tuple[str, str, str]] = [
    ("Sales Order Format", "{customer_code}/{project_code}/{company_code}/{sales_rep}/", "sales"),
    ("Project Customer Format", "{customer_code}/{project_code}/", "sales"),
    ("Customer Monthly", "{customer_code}/{year}/{month}/", "sales"),
    ("Purchase Order Format", "{vendor_code}/{project_code}/{company_code}/", "purchase"),
    ("Vendor Monthly", "{vendor_code}/{year}/{month}/", "purchase"),
    ("Invoice Format", "{customer_code}/INV/{year}/{month}/", "accounting"),
    ("Payment Format", "{customer_code}/PAY/{year}/{month}/", "accounting"),
    ("Employee Monthly", "{user_code}/{year}/{month}/", "hr"),
    ("Cash Advance Format", "{user_code}/CA/{year}/", "hr"),
    ("Company Project", "{company_code}/{project_code}/", "project"),
    ("Company Year Format", "{company_code}-{year}-", "company"),
    ("Monthly Format", "{year}/{month}/", "general"),
    ("Yearly Format", "{year}/", "general"),
]


def extract_tokens(template: str) -> list[str]:
    """Token names in order of appearance (duplicates kept)."""
    return TOKEN_PATTERN.findall(template or "")


def validate_template(template: str) -> set[str]:
    """
    Return the ``{...}`` substrings of *template* that are not recognised.

    An empty set means the template is well-formed.
    """
    return {f"{{{name}}}" for name in extract_tokens(template) if name not in ALLOWED_TOKENS}


def format_counter(counter: int, width: int = DEFAULT_COUNTER_WIDTH) -> str:
    if counter < 1:
        raise ValueError(f"counter must be >= 1, got {counter}")
    return str(counter).zfill(width)


def date_values(today: date) -> dict[str, str]:
    return {
        "year": f"{today.year:04d}",
        "month": f"{today.month:02d}",
        "day": f"{today.day:02d}",
    }


def _substitute(template: str, values: Mapping[str, str]) -> str:
    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in ALLOWED_TOKENS and name in values:
            return str(values[name])
        return match.group(0)

    return TOKEN_PATTERN.sub(_replace, template)


def render_preview(
    template: str,
    counter: int,
    context: Mapping[str, str] | None = None,
    today: date | None = None,
    width: int = DEFAULT_COUNTER_WIDTH,
) -> str:
    """
    Render *template* for display, falling back to example values.

    Real values in *context* win over the examples; date tokens use *today*
    (the current date when omitted).  Unrecognised tokens stay verbatim.
    """
    values: dict[str, str] = dict(EXAMPLE_VALUES)
    values.update({k: str(v) for k, v in (context or {}).items() if v not in (None, "")})
    values.update(date_values(today or date.today()))
    return _substitute(template or "", values) + format_counter(counter, width)


def render_code(
    template: str,
    counter: int,
    context: Mapping[str, str],
    today: date,
    width: int = DEFAULT_COUNTER_WIDTH,
) -> str:
    """
    Render the real document code.

    Every non-date token must have a non-empty value in *context*; date
    tokens always come from *today*.
    """
    template = template or ""
    missing: list[str] = []
    for name in extract_tokens(template):
        if name in DATE_TOKENS or name not in ALLOWED_TOKENS:
            continue
        if context.get(name) in (None, "") and name not in missing:
            missing.append(name)
    if missing:
        raise MissingContextError(missing)

    values = {k: str(v) for k, v in context.items()}
    values.update(date_values(today))
    return _substitute(template, values) + format_counter(counter, width)
