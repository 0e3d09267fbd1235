"""
Domain Models for the Partner Revenue-Share Engine

These dataclasses provide typed representations of the rows fetched from the
store. All monetary values and split fractions use Decimal for precision.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

# Engagement statuses whose profit counts toward partner payouts
CONTRIBUTING_STATUSES = frozenset({"completed", "paid"})


def optional_decimal(value) -> Decimal | None:
    """
    Convert a row value to Decimal, or None when it is absent or not a
    finite number.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def to_decimal(value, default: Decimal = Decimal("0")) -> Decimal:
    """Like optional_decimal, but absent and malformed values become the default."""
    result = optional_decimal(value)
    return default if result is None else result


def resolve_client_name(related) -> str | None:
    """
    Normalize an embedded client relation into a display name.

    The store may nest the related client as a single object or as a
    single-element list depending on how the join was expressed.
    """
    if isinstance(related, list):
        related = related[0] if related else None
    if not isinstance(related, dict):
        return None
    name = related.get("name") or ""
    surname = related.get("surname") or ""
    full_name = f"{name} {surname}".strip()
    return full_name or None


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass
class Partner:
    """An external business entitled to a share of profit from assigned clients."""

    id: str
    name: str
    default_split_partner: Decimal
    default_split_owner: Decimal
    contact_info: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Partner":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            default_split_partner=to_decimal(data.get("default_split_partner")),
            default_split_owner=to_decimal(data.get("default_split_owner")),
            contact_info=data.get("contact_info"),
            notes=data.get("notes"),
        )


@dataclass
class Assignment:
    """Links a partner to a client, optionally overriding the partner's split."""

    partner_id: str
    client_id: str
    id: str | None = None
    split_partner_override: Decimal | None = None
    split_owner_override: Decimal | None = None
    client_name: str | None = None  # Resolved from the embedded client relation
    notes: str | None = None
    assigned_at: str | None = None

    @property
    def has_override(self) -> bool:
        return self.split_partner_override is not None or self.split_owner_override is not None

    def effective_split_partner(self, partner: Partner) -> Decimal:
        if self.split_partner_override is not None:
            return self.split_partner_override
        return partner.default_split_partner

    def effective_split_owner(self, partner: Partner) -> Decimal:
        if self.split_owner_override is not None:
            return self.split_owner_override
        return partner.default_split_owner

    @classmethod
    def from_dict(cls, data: dict) -> "Assignment":
        # Accept both the singular alias and the table-named embed
        related = data.get("client", data.get("clients"))
        return cls(
            id=data.get("id"),
            partner_id=data.get("partner_id"),
            client_id=data.get("client_id"),
            split_partner_override=optional_decimal(data.get("split_partner_override")),
            split_owner_override=optional_decimal(data.get("split_owner_override")),
            client_name=resolve_client_name(related),
            notes=data.get("notes"),
            assigned_at=data.get("assigned_at"),
        )


@dataclass
class Engagement:
    """A client's participation in an app offer (a client_apps row)."""

    client_id: str
    status: str
    profit_us: Decimal = Decimal("0")
    id: str | None = None
    app_id: str | None = None
    created_at: str | None = None
    completed_at: str | None = None

    @property
    def contributes(self) -> bool:
        return self.status in CONTRIBUTING_STATUSES

    @property
    def month_key(self) -> str | None:
        """YYYY-MM bucket, preferring the completion date over the creation date."""
        raw_date = self.completed_at or self.created_at
        if not raw_date:
            return None
        return raw_date[:7]

    @classmethod
    def from_dict(cls, data: dict) -> "Engagement":
        return cls(
            id=data.get("id"),
            client_id=data.get("client_id"),
            app_id=data.get("app_id"),
            status=data.get("status") or "",
            profit_us=to_decimal(data.get("profit_us")),
            created_at=data.get("created_at"),
            completed_at=data.get("completed_at"),
        )


@dataclass
class AppSplit:
    """Partner split that applies to every engagement on a specific app."""

    partner_id: str
    app_id: str
    split_partner: Decimal | None
    split_owner: Decimal | None
    id: str | None = None
    notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "AppSplit":
        return cls(
            id=data.get("id"),
            partner_id=data.get("partner_id"),
            app_id=data.get("app_id"),
            split_partner=optional_decimal(data.get("split_partner")),
            split_owner=optional_decimal(data.get("split_owner")),
            notes=data.get("notes"),
        )


@dataclass
class Payment:
    """Money actually paid out to a partner. Append-only ledger entry."""

    partner_id: str
    amount: Decimal
    id: str | None = None
    paid_at: str | None = None
    note: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Payment":
        return cls(
            id=data.get("id"),
            partner_id=data.get("partner_id"),
            amount=to_decimal(data.get("amount")),
            paid_at=data.get("paid_at"),
            note=data.get("note"),
        )


@dataclass
class PartnerInput:
    """Complete set of rows needed to summarize one partner."""

    partner: Partner
    assignments: list[Assignment] = field(default_factory=list)
    engagements: list[Engagement] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    app_splits: list[AppSplit] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "PartnerInput":
        partner = Partner.from_dict(data["partner"])
        assignments = [Assignment.from_dict(a) for a in data.get("assignments") or []]
        for assignment in assignments:
            # Rows fetched already filtered by partner may omit the key
            if assignment.partner_id is None:
                assignment.partner_id = partner.id
        return cls(
            partner=partner,
            assignments=assignments,
            engagements=[Engagement.from_dict(e) for e in data.get("client_apps") or []],
            payments=[Payment.from_dict(p) for p in data.get("payments") or []],
            app_splits=[AppSplit.from_dict(s) for s in data.get("app_splits") or []],
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class PartnerClientBreakdown:
    """Profit split for one assigned client."""

    client_id: str
    client_name: str
    total_profit: Decimal = Decimal("0")
    partner_share: Decimal = Decimal("0")
    owner_share: Decimal = Decimal("0")
    split_partner: Decimal = Decimal("0")
    split_owner: Decimal = Decimal("0")
    override: bool = False


@dataclass
class PartnerBalance:
    """
    Earned share minus amount already paid.

    A positive balance means the partner is owed money; negative means the
    partner has been paid in advance.
    """

    partner_id: str
    total_profit: Decimal = Decimal("0")
    partner_share: Decimal = Decimal("0")
    owner_share: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")


@dataclass
class MonthlyPoint:
    month: str
    amount: Decimal


@dataclass
class PartnerSummary:
    """Final output of the partner pipeline."""

    partner: Partner
    balance: PartnerBalance
    breakdown: list[PartnerClientBreakdown]
    monthly: list[MonthlyPoint]
    payments: list[Payment]

    @property
    def clients_count(self) -> int:
        return len(self.breakdown)


# =============================================================================
# INGESTION MODELS
# =============================================================================


@dataclass
class Lead:
    """An inbound contact parsed from a webhook payload."""

    source: str  # 'calendly' or 'google_forms'
    external_id: str | None
    full_name: str = ""
    first_name: str = ""
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    notes: str | None = None
    requested_apps: str | None = None
    request_type: str | None = None
    request_status: str = "new"
    payload: dict = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.full_name or f"{self.first_name} {self.last_name or ''}".strip()


@dataclass
class IngestionResult:
    """Outcome of one webhook delivery."""

    client_id: str | None
    client_created: bool
    request_id: str | None
    logs: list[dict] = field(default_factory=list)
    possible_duplicate_id: str | None = None  # Name-similarity hint, never linked
    duplicate_delivery: bool = False
    success: bool = True
