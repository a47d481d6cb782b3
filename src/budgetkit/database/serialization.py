"""JSON codec for whole-store export, import and the local state file.

The format uses the browser-storage layout of the budgeting web app
(camelCase keys, ``accountTxns``, ``projectContribs``) so exports from the
web app and from budgetkit can be imported by each other.

Each record type has a pydantic model that validates one JSON object and
converts it to and from the matching domain entity.
"""

import json
from dataclasses import asdict
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
)
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

from budgetkit.domain.entities import (
    Account,
    AccountTxn,
    AccountType,
    Currency,
    Expense,
    Income,
    Investment,
    LinkedType,
    Project,
    ProjectContribution,
    Recurrence,
    RecurrencePeriod,
    Store,
    Transfer,
    TxnType,
)
from budgetkit.domain.errors import ValidationError
from budgetkit.domain.recurrence import normalize_expense
from budgetkit.utils.amount_parser import round_money


def _money_input(value: Any) -> Any:
    return Decimal("0") if value is None or value == "" else value


def _number(value: Decimal) -> float | int:
    as_float = float(value)
    return int(as_float) if as_float.is_integer() else as_float


def _iso_date(value: Any) -> Any:
    # Timestamps such as 2024-01-05T10:00:00.000Z keep only their date part.
    return value[:10] if isinstance(value, str) else value


def _optional_iso_date(value: Any) -> Any:
    return _iso_date(value) if value else None


def _account_currency(value: Any) -> Currency:
    # Account currencies other than KSH are read as USD.
    return Currency.KSH if value == Currency.KSH.value else Currency.USD


def _period(value: Any) -> Any:
    if not value:
        return RecurrencePeriod.MONTHLY
    return value.strip().lower() if isinstance(value, str) else value


Money = Annotated[
    Decimal,
    BeforeValidator(_money_input),
    AfterValidator(round_money),
    PlainSerializer(_number, when_used="json"),
]
IsoDate = Annotated[date, BeforeValidator(_iso_date)]
OptionalIsoDate = Annotated[Optional[date], BeforeValidator(_optional_iso_date)]
Text = Annotated[str, BeforeValidator(lambda value: "" if value is None else value)]
OptionalId = Annotated[Optional[str], BeforeValidator(lambda value: value or None)]
Flag = Annotated[bool, BeforeValidator(lambda value: False if value is None else value)]


class Record(BaseModel):
    """Base for one JSON record of a store collection."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    entity: ClassVar[type]

    @classmethod
    def from_domain(cls, entity) -> "Record":
        return cls.model_validate(asdict(entity))

    def to_domain(self):
        return self.entity(**self.model_dump())


class AccountRecord(Record):
    entity = Account

    id: str
    name: Text = ""
    type: AccountType = AccountType.WALLET
    balance: Money = Decimal("0")
    currency: Annotated[Currency, BeforeValidator(_account_currency)] = Currency.USD


class IncomeRecord(Record):
    entity = Income

    id: str
    date: IsoDate
    source: Text = ""
    amount: Money = Decimal("0")
    account_id: Text = ""
    notes: Optional[str] = None


class RecurrenceRecord(Record):
    enabled: Flag = False
    period: Annotated[RecurrencePeriod, BeforeValidator(_period)] = RecurrencePeriod.MONTHLY
    start: OptionalIsoDate = None
    end: OptionalIsoDate = None


class ExpenseRecord(Record):
    entity = Expense

    id: str
    date: IsoDate
    category: Text = ""
    amount: Money = Decimal("0")
    account_id: Text = ""
    is_recurring: Flag = False
    recurrence: Annotated[Optional[RecurrenceRecord], BeforeValidator(lambda value: value or None)] = None
    notes: Optional[str] = None

    def to_domain(self) -> Expense:
        """Build the normalised expense; a recurrence without start is anchored on the expense date."""
        recurrence = None
        if self.recurrence is not None:
            recurrence = Recurrence(
                enabled=self.recurrence.enabled,
                period=self.recurrence.period,
                start=self.recurrence.start or self.date,
                end=self.recurrence.end,
            )
        expense = Expense(
            id=self.id,
            date=self.date,
            category=self.category,
            amount=self.amount,
            account_id=self.account_id,
            is_recurring=self.is_recurring,
            recurrence=recurrence,
            notes=self.notes,
        )
        return normalize_expense(expense)


class TransferRecord(Record):
    entity = Transfer

    id: str
    date: IsoDate
    from_account_id: str
    to_account_id: str
    amount: Money = Decimal("0")
    notes: Optional[str] = None


class AccountTxnRecord(Record):
    entity = AccountTxn

    id: str
    date: IsoDate
    account_id: str
    type: TxnType
    amount: Money = Decimal("0")
    linked_type: LinkedType
    linked_id: str
    notes: Text = ""
    transfer_from_id: Optional[str] = None
    transfer_to_id: Optional[str] = None


class ProjectRecord(Record):
    entity = Project

    id: str
    name: Text = ""
    target_amount: Money = Decimal("0")
    target_date: IsoDate
    notes: Optional[str] = None


class ContributionRecord(Record):
    entity = ProjectContribution

    id: str
    project_id: str
    date: IsoDate
    amount: Money = Decimal("0")


class InvestmentRecord(Record):
    entity = Investment

    id: str
    date: IsoDate
    instrument: Text = ""
    amount: Money = Decimal("0")
    account_id: OptionalId = None
    notes: Optional[str] = None


class StateDocument(BaseModel):
    """The whole exported state. Field names match ``Store`` attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    currency: Currency = Currency.USD
    accounts: list[AccountRecord] = Field(default_factory=list)
    incomes: list[IncomeRecord] = Field(default_factory=list)
    expenses: list[ExpenseRecord] = Field(default_factory=list)
    transfers: list[TransferRecord] = Field(default_factory=list)
    account_txns: list[AccountTxnRecord] = Field(default_factory=list)
    projects: list[ProjectRecord] = Field(default_factory=list)
    project_contributions: list[ContributionRecord] = Field(default_factory=list, alias="projectContribs")
    investments: list[InvestmentRecord] = Field(default_factory=list)

    @classmethod
    def from_store(cls, store: Store) -> "StateDocument":
        return cls(
            currency=store.currency,
            accounts=[AccountRecord.from_domain(item) for item in store.accounts],
            incomes=[IncomeRecord.from_domain(item) for item in store.incomes],
            expenses=[ExpenseRecord.from_domain(item) for item in store.expenses],
            transfers=[TransferRecord.from_domain(item) for item in store.transfers],
            account_txns=[AccountTxnRecord.from_domain(item) for item in store.account_txns],
            projects=[ProjectRecord.from_domain(item) for item in store.projects],
            project_contributions=[ContributionRecord.from_domain(item) for item in store.project_contributions],
            investments=[InvestmentRecord.from_domain(item) for item in store.investments],
        )

    @classmethod
    def known_keys(cls) -> set[str]:
        keys = set(cls.model_fields)
        keys.update(field.alias for field in cls.model_fields.values() if field.alias)
        return keys


def _describe(error: SchemaError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()[:3]
    ]
    return "; ".join(problems)


def store_to_dict(store: Store) -> dict:
    return StateDocument.from_store(store).model_dump(mode="json", by_alias=True, exclude_none=True)


def merge_state(base: Store, data: Any) -> tuple[Store, list[str]]:
    """Shallow-merge a decoded JSON object into a copy of ``base``.

    Each recognised top-level field of ``data`` replaces the matching field
    of ``base``; everything else in ``base`` is kept.

    Returns:
        The merged store and the list of top-level keys that were ignored

    Raises:
        ValidationError: If the payload is not an object or a record is malformed
    """
    if not isinstance(data, dict):
        raise ValidationError("State must be a JSON object")

    try:
        document = StateDocument.model_validate(data)
    except SchemaError as e:
        raise ValidationError(f"Invalid state: {_describe(e)}") from e

    known = StateDocument.known_keys()
    ignored = [key for key in data if key not in known]

    merged = Store(
        currency=base.currency,
        **{name: list(getattr(base, name)) for name in StateDocument.model_fields if name != "currency"},
    )
    for name in document.model_fields_set:
        if name == "currency":
            merged.currency = document.currency
        else:
            setattr(merged, name, [record.to_domain() for record in getattr(document, name)])
    return merged, ignored


def dumps(store: Store) -> str:
    """Serialize a store to indented JSON text."""
    return json.dumps(store_to_dict(store), indent=2, ensure_ascii=False)


def loads(text: str) -> Any:
    """Parse JSON text, reporting syntax errors as validation failures."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}")
