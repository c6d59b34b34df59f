"""
Built-in disbursement payload: the base template, its curated field list and
the fixed defaults the merge engine falls back on.
"""
from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List

from .paths import parse_path
from .types import TemplateField

_DEFAULT_TEMPLATE: Dict[str, Any] = {
    "server": "live",
    "disbursements": [
        {
            "payor_email": "",
            "disbursement_uuid": "",
            "authorization_parties": [],
            "payees": [
                {
                    "payee_type_id": 1,
                    "amount": 0,
                    "email": "",
                    "payee_uuid": "",
                    "first_name": "",
                    "last_name": "",
                    "address_one": "",
                    "address_two": "",
                    "city": "",
                    "state": "",
                    "zip_code": "",
                    "phone": "",
                    "delivery_options": {
                        "email": False,
                        "sms": True,
                        "automatic_disburst": False,
                        "direct_disburse": False,
                    },
                    "allowed_payment_method_ids": [1, 2, 3, 4, 5, 6, 7],
                    "field_values": [
                        {"name": "PolicyNumber", "value": ""},
                        {"name": "CheckNumber", "value": ""},
                    ],
                    "custom_document_ids": [],
                    "permission_required_from": [],
                    "payment_method_settings": {"check_postage_type": None},
                }
            ],
        }
    ],
}

_PAYEE = "disbursements[0].payees[0]"

# (path, type, example, required, description)
_DEFAULT_FIELD_ROWS = [
    ("disbursements[0].payor_email", "string", "example@company.com", True, None),
    ("disbursements[0].disbursement_uuid", "string", "9102274", True, None),
    (f"{_PAYEE}.amount", "number", "58.80", True, None),
    (f"{_PAYEE}.payee_uuid", "string", "IN0012454C", True, None),
    (f"{_PAYEE}.first_name", "string", "AUBREE", True, None),
    (f"{_PAYEE}.last_name", "string", "JONES", True, None),
    (f"{_PAYEE}.address_one", "string", "4324", True, None),
    (f"{_PAYEE}.address_two", "string", "S MADISON AVE", False, None),
    (f"{_PAYEE}.city", "string", "ANDERSON", True, None),
    (f"{_PAYEE}.state", "string", "IN", True, None),
    (f"{_PAYEE}.zip_code", "string", "46013", True, None),
    (f"{_PAYEE}.phone", "string", "8125531337", False, None),
    (f"{_PAYEE}.field_values[0].value", "string", "IN0012454C", True, "PolicyNumber"),
    (f"{_PAYEE}.field_values[1].value", "string", "9102274", True, "CheckNumber"),
]

DEFAULT_TEMPLATE_FIELDS: List[TemplateField] = [
    TemplateField(
        path=parse_path(p),
        value_type=t,
        example=ex,
        required=req,
        description=desc,
    )
    for p, t, ex, req, desc in _DEFAULT_FIELD_ROWS
]

DEFAULT_FIELD_PATHS = frozenset(f.path for f in DEFAULT_TEMPLATE_FIELDS)

# Array-of-id fields that only ever take their canonical list; keyed by the
# last path segment.
ARRAY_ID_DEFAULTS: Dict[str, List[int]] = {
    "allowed_payment_method_ids": [1, 2, 3, 4, 5, 6, 7],
}


def default_template() -> Dict[str, Any]:
    """Fresh copy of the built-in disbursement template."""
    return deepcopy(_DEFAULT_TEMPLATE)


def required_fields() -> List[TemplateField]:
    return [f for f in DEFAULT_TEMPLATE_FIELDS if f.required]
