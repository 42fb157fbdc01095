"""
Header contract for family registration sheets.

Sheets in the field are produced from different templates: English headers
(``RecordType``, ``Record Number``, ``record_number``...) and the original
Portuguese labels (``Tipo``, ``Ficha``, ``Data de Cadastro``...). Every
accepted spelling is folded to one :class:`Column` at parse time so the rest
of the pipeline never looks at raw header text. Headers that match nothing
are ignored.
"""
import re
import unicodedata
from enum import Enum
from typing import Dict, Optional


class Column(str, Enum):
    RECORD_TYPE = "RecordType"
    RECORD_NUMBER = "RecordNumber"
    REGISTRATION_DATE = "RegistrationDate"
    NAME = "Name"
    MARITAL_STATUS = "MaritalStatus"
    BIRTH_DATE = "BirthDate"
    AGE = "Age"
    ADDRESS = "Address"
    NEIGHBORHOOD = "Neighborhood"
    PHONE = "Phone"
    HAS_WHATSAPP = "HasWhatsapp"
    NATIONAL_ID = "NationalId"
    STATE_ID = "StateId"
    HAS_CHILDREN = "HasChildren"
    CHILD_COUNT = "ChildCount"
    HOUSEHOLD_SIZE = "HouseholdSize"
    INCOME = "Income"
    HEALTH_CONDITION = "HealthCondition"
    HOUSING_SITUATION = "HousingSituation"
    NOTE = "Note"
    STATUS = "Status"
    RELATIONSHIP = "Relationship"
    OCCUPATION = "Occupation"
    OCCUPATION_NOTE = "OccupationNote"


class RecordType(str, Enum):
    FAMILY = "FAMILY"
    MEMBER = "MEMBER"


def fold_text(value: str) -> str:
    """Lowercase, strip accents and drop everything but letters and digits."""
    decomposed = unicodedata.normalize("NFKD", value)
    without_accents = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]", "", without_accents.lower())


_LOCALIZED_HEADERS = {
    Column.RECORD_TYPE: ["Tipo", "Type"],
    Column.RECORD_NUMBER: ["Ficha", "Record", "Record No"],
    Column.REGISTRATION_DATE: ["Data de Cadastro", "Registered At"],
    Column.NAME: ["Nome"],
    Column.MARITAL_STATUS: ["Estado Civil"],
    Column.BIRTH_DATE: ["Data de Nascimento", "Nascimento", "Date of Birth"],
    Column.AGE: ["Idade"],
    Column.ADDRESS: ["Endereço"],
    Column.NEIGHBORHOOD: ["Bairro"],
    Column.PHONE: ["Telefone"],
    Column.HAS_WHATSAPP: ["WhatsApp"],
    Column.NATIONAL_ID: ["CPF"],
    Column.STATE_ID: ["RG"],
    Column.HAS_CHILDREN: ["Filhos", "Children"],
    Column.CHILD_COUNT: ["Qtd. Filhos", "Quantidade de Filhos"],
    Column.HOUSEHOLD_SIZE: ["Total de Moradores", "Moradores"],
    Column.INCOME: ["Renda"],
    Column.HEALTH_CONDITION: ["Comorbidade"],
    Column.HOUSING_SITUATION: ["Situação do Imóvel", "Housing"],
    Column.NOTE: ["Observação", "Notes"],
    Column.STATUS: [],
    Column.RELATIONSHIP: ["Parentesco"],
    Column.OCCUPATION: ["Ocupação"],
    Column.OCCUPATION_NOTE: ["Observação Ocupação", "Occupation Notes"],
}


def _build_header_index() -> Dict[str, Column]:
    index: Dict[str, Column] = {}
    for column in Column:
        # "RecordType", "record_type" and "Record Type" all fold to "recordtype".
        index[fold_text(column.value)] = column
        for alias in _LOCALIZED_HEADERS.get(column, []):
            index[fold_text(alias)] = column
    return index


HEADER_INDEX = _build_header_index()

_RECORD_MARKERS = {
    "family": RecordType.FAMILY,
    "familia": RecordType.FAMILY,
    "member": RecordType.MEMBER,
    "membro": RecordType.MEMBER,
}

STATUS_VALUES = {
    "active": "Active",
    "ativo": "Active",
    "ativa": "Active",
    "inactive": "Inactive",
    "inativo": "Inactive",
    "inativa": "Inactive",
    "pending": "Pending",
    "pendente": "Pending",
}

RELATIONSHIP_VALUES = {
    "self": "Self",
    "proprioa": "Self",
    "proprio": "Self",
    "propria": "Self",
    "child": "Child",
    "filhoa": "Child",
    "filho": "Child",
    "filha": "Child",
}


def canonical_column(header: object) -> Optional[Column]:
    """Map a raw header cell to its :class:`Column`, or None for unknown headers."""
    if header is None:
        return None
    return HEADER_INDEX.get(fold_text(str(header)))


def record_type_of(value: object) -> Optional[RecordType]:
    """Read a record marker cell ("FAMILY", "FAMÍLIA", "MEMBER", "MEMBRO")."""
    if value is None:
        return None
    return _RECORD_MARKERS.get(fold_text(str(value)))
