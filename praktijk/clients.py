import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from flask import current_app
from sqlalchemy import Select

from praktijk.crypto import decrypt_fields, encrypt_fields, user_key
from praktijk.crypto.db_field_encryption import DecryptedFields, encrypt_field
from praktijk.db import db
from praktijk.model import Client, ImportSource, InsuranceCompany, MedicalCondition

ENCRYPTED_FIELDS = (
    "name_encrypted",
    "email_encrypted",
    "phone_encrypted",
    "date_of_birth_encrypted",
    "notes_encrypted",
    "insurance_number_encrypted",
    "medical_conditions_encrypted",
)

# update keys that map onto an encrypted column
_UPDATABLE_FIELDS = {
    "name": "name_encrypted",
    "email": "email_encrypted",
    "phone": "phone_encrypted",
    "date_of_birth": "date_of_birth_encrypted",
    "notes": "notes_encrypted",
    "insurance_number": "insurance_number_encrypted",
    "medical_conditions": "medical_conditions_encrypted",
}


@dataclass
class ClientRecord:
    """The decrypted view of a client"""

    id: str
    user_id: str
    name: str
    insurance_company: InsuranceCompany
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    notes: Optional[str] = None
    insurance_number: Optional[str] = None
    medical_conditions: Optional[list[MedicalCondition]] = None
    import_source: ImportSource = ImportSource.MANUAL
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # names of the columns that could not be decrypted and were blanked
    undecryptable_fields: frozenset[str] = field(default_factory=frozenset)


def _format_date(value: date | str | None) -> str | None:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        current_app.logger.warning("Client date of birth is not an ISO 8601 date")
        return None


def _format_medical_conditions(
    conditions: Optional[Sequence[MedicalCondition | str]],
) -> str | None:
    if not conditions:
        return None
    return json.dumps([MedicalCondition(c).value for c in conditions])


def _parse_medical_conditions(value: str) -> list[MedicalCondition] | None:
    try:
        conditions = [MedicalCondition(c) for c in json.loads(value or "[]")]
    except (ValueError, TypeError):
        current_app.logger.warning("Client medical conditions could not be parsed")
        return None
    return conditions or None


def _to_record(row: Client, decrypted: DecryptedFields) -> ClientRecord:
    medical_conditions = None
    if row.medical_conditions_encrypted:
        medical_conditions = _parse_medical_conditions(
            decrypted.get("medical_conditions_encrypted", "")
        )

    date_of_birth = None
    if dob := decrypted.get("date_of_birth_encrypted"):
        date_of_birth = _parse_date(dob)

    return ClientRecord(
        id=row.id,
        user_id=row.user_id,
        name=decrypted.get("name_encrypted", ""),
        email=decrypted.get("email_encrypted") or None,
        phone=decrypted.get("phone_encrypted") or None,
        date_of_birth=date_of_birth,
        notes=decrypted.get("notes_encrypted") or None,
        insurance_company=row.insurance_company,
        insurance_number=decrypted.get("insurance_number_encrypted") or None,
        medical_conditions=medical_conditions,
        import_source=row.import_source,
        created_at=row.created_at,
        updated_at=row.updated_at,
        undecryptable_fields=decrypted.failed,
    )


def _decrypt_row(row: Client, key: bytearray) -> ClientRecord:
    decrypted = decrypt_fields({name: getattr(row, name) for name in ENCRYPTED_FIELDS}, key)
    if decrypted.failed:
        current_app.logger.warning(
            f"Client {row.id} has undecryptable fields: {', '.join(sorted(decrypted.failed))}"
        )
    return _to_record(row, decrypted)


def _select_clients(user_id: str) -> Select[tuple[Client]]:
    return db.select(Client).filter(Client.user_id == user_id, Client.deleted_at.is_(None))


def _matches(client: ClientRecord, search: str) -> bool:
    return (
        search in client.name.lower()
        or search in (client.email or "").lower()
        or search in (client.insurance_number or "")
    )


def get_clients(
    user_id: str,
    *,
    search: Optional[str] = None,
    insurance_company: Optional[InsuranceCompany | str] = None,
) -> list[ClientRecord]:
    query = _select_clients(user_id).order_by(Client.created_at.desc())
    if insurance_company:
        query = query.filter(Client.insurance_company == InsuranceCompany(insurance_company))

    rows = db.session.scalars(query).all()
    if not rows:
        return []

    with user_key(user_id) as key:
        clients = [_decrypt_row(row, key) for row in rows]

    # the searchable fields are encrypted, so searching happens after decryption
    if search:
        search = search.lower()
        return [c for c in clients if _matches(c, search)]

    return clients


def get_client_by_id(user_id: str, client_id: str) -> ClientRecord | None:
    row = db.session.scalars(_select_clients(user_id).filter(Client.id == client_id)).one_or_none()
    if row is None:
        return None

    with user_key(user_id) as key:
        return _decrypt_row(row, key)


def create_client(  # noqa: PLR0913
    user_id: str,
    *,
    name: str,
    insurance_company: InsuranceCompany | str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    date_of_birth: date | str | None = None,
    notes: Optional[str] = None,
    insurance_number: Optional[str] = None,
    medical_conditions: Optional[Sequence[MedicalCondition | str]] = None,
    import_source: ImportSource | str = ImportSource.MANUAL,
) -> ClientRecord:
    with user_key(user_id) as key:
        encrypted = encrypt_fields(
            {
                "name_encrypted": name,
                "email_encrypted": email,
                "phone_encrypted": phone,
                "date_of_birth_encrypted": _format_date(date_of_birth),
                "notes_encrypted": notes,
                "insurance_number_encrypted": insurance_number,
                "medical_conditions_encrypted": _format_medical_conditions(medical_conditions),
            },
            key,
        )

        # empty ciphertext means no value, store it as NULL
        columns = {column: encrypted.get(column) or None for column in ENCRYPTED_FIELDS}
        # except for the name, which is required
        columns["name_encrypted"] = encrypted.get("name_encrypted", "")

        row = Client(
            user_id=user_id,  # type: ignore[call-arg]
            insurance_company=InsuranceCompany(insurance_company),  # type: ignore[call-arg]
            import_source=ImportSource(import_source),  # type: ignore[call-arg]
            **columns,
        )
        db.session.add(row)
        db.session.commit()

        current_app.logger.info(f"Created client {row.id} for user {user_id}")
        return _decrypt_row(row, key)


def _encrypted_update(name: str, value: Any, key: bytearray) -> str | None:
    if name == "medical_conditions":
        value = _format_medical_conditions(value)
    elif name == "date_of_birth":
        value = _format_date(value)

    # falsey values clear the column
    if not value:
        return None
    return encrypt_field(value, key)


def update_client(
    user_id: str, client_id: str, updates: Mapping[str, Any]
) -> ClientRecord | None:
    """
    Apply a partial update. Only the keys present in `updates` are touched, and a falsey value
    clears the field.
    """
    row = db.session.scalars(_select_clients(user_id).filter(Client.id == client_id)).one_or_none()
    if row is None:
        return None

    with user_key(user_id) as key:
        for name, column in _UPDATABLE_FIELDS.items():
            if name in updates:
                setattr(row, column, _encrypted_update(name, updates[name], key))

        # the name column is not nullable
        if row.name_encrypted is None:
            row.name_encrypted = ""

        if insurance_company := updates.get("insurance_company"):
            row.insurance_company = InsuranceCompany(insurance_company)

        db.session.commit()
        return _decrypt_row(row, key)


def delete_client(user_id: str, client_id: str) -> bool:
    row = db.session.scalars(_select_clients(user_id).filter(Client.id == client_id)).one_or_none()
    if row is None:
        return False

    row.deleted_at = datetime.now(timezone.utc)
    db.session.commit()
    current_app.logger.info(f"Deleted client {client_id} for user {user_id}")
    return True
