"""
Builders for registration sheets used across the import tests.
"""
import io
from typing import Dict, List

import pandas as pd

ACCOUNT_ID = "account-1"
OTHER_ACCOUNT_ID = "account-2"

COLUMNS = [
    "RecordType", "RecordNumber", "RegistrationDate", "Name", "MaritalStatus", "BirthDate",
    "Age", "Address", "Neighborhood", "Phone", "HasWhatsapp", "NationalId", "StateId",
    "HasChildren", "ChildCount", "HouseholdSize", "Income", "HealthCondition",
    "HousingSituation", "Note", "Status", "Relationship", "Occupation", "OccupationNote",
]

_FAMILY_DEFAULTS = {
    "RecordType": "FAMILY",
    "RecordNumber": "1",
    "RegistrationDate": "10/01/2024",
    "Name": "Maria Souza",
    "MaritalStatus": "Single",
    "BirthDate": "",
    "Age": "40",
    "Address": "Rua A 10",
    "Neighborhood": "Centro",
    "Phone": "(11) 98765-4321",
    "HasWhatsapp": "Sim",
    "NationalId": "123.456.789-09",
    "StateId": "12.345.678-9",
    "HasChildren": "Nao",
    "ChildCount": "0",
    "HouseholdSize": "1",
    "Income": "1500",
    "HealthCondition": "",
    "HousingSituation": "Rented",
    "Note": "",
    "Status": "Ativo",
    "Relationship": "",
    "Occupation": "Unemployed",
    "OccupationNote": "",
}

_MEMBER_DEFAULTS = {column: "" for column in COLUMNS}
_MEMBER_DEFAULTS.update(
    {"RecordType": "MEMBER", "Name": "Joao Souza", "Age": "10", "Relationship": "Child"}
)


def family_row(**overrides: str) -> Dict[str, str]:
    row = dict(_FAMILY_DEFAULTS)
    row.update(overrides)
    return row


def member_row(**overrides: str) -> Dict[str, str]:
    row = dict(_MEMBER_DEFAULTS)
    row.update(overrides)
    return row


def csv_bytes(rows: List[Dict[str, str]], delimiter: str = ",") -> bytes:
    lines = [delimiter.join(COLUMNS)]
    for row in rows:
        lines.append(delimiter.join(row.get(column, "") for column in COLUMNS))
    return ("\n".join(lines) + "\n").encode("utf-8")


def xlsx_bytes(rows: List[Dict[str, str]], columns: List[str] = None) -> bytes:
    buffer = io.BytesIO()
    pd.DataFrame(rows, columns=columns or COLUMNS).to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()
