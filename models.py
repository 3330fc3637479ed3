import re
import uuid
from datetime import date, timedelta
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from utils import to_float


DocumentType = Literal["invoice", "quote", "receipt"]
DocumentStatus = Literal["draft", "sent", "paid", "overdue"]
FontFamily = Literal["helvetica", "times", "courier"]
LayoutName = Literal["modern", "classic"]
FontStyle = Literal["normal", "bold", "italic"]
TextAlign = Literal["left", "center", "right"]

DEFAULT_ACCENT_COLOR = "#f97316"

BRAND_COLORS = {
    "Orange":  "#f97316",
    "Blue":    "#2563eb",
    "Indigo":  "#4f46e5",
    "Emerald": "#059669",
    "Red":     "#dc2626",
    "Slate":   "#334155",
}

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def normalize_hex_color(value: str) -> str:
    """'#F73' / '#F97316' -> '#ff7733' / '#f97316'. Raises ValueError otherwise."""
    value = str(value).strip()
    if not _HEX_COLOR.match(value):
        raise ValueError(f"Colour '{value}' is not a #rrggbb hex value")
    digits = value[1:].lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


# ── Documents ──────────────────────────────────────────────────────────────────

class LineItem(BaseModel):
    id: str = Field(default_factory=_new_id)
    description: str = ""
    quantity: float = 0.0
    unit_price: float = Field(
        default=0.0,
        validation_alias=AliasChoices("unit_price", "unitPrice", "price"),
    )

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def _coerce_number(cls, value):
        # Text or garbage from the form buffer counts as zero.
        return to_float(value)

    @field_validator("id", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return "" if value is None else str(value)

    @property
    def amount(self) -> float:
        return self.quantity * self.unit_price


class DocumentDesign(BaseModel):
    accent_color: str = Field(
        default=DEFAULT_ACCENT_COLOR,
        validation_alias=AliasChoices("accent_color", "accentColor", "color"),
    )
    font_family: FontFamily = Field(
        default="helvetica",
        validation_alias=AliasChoices("font_family", "fontFamily", "font"),
    )
    layout: LayoutName = "modern"

    @field_validator("accent_color", mode="before")
    @classmethod
    def _check_color(cls, value):
        if value is None or value == "":
            return DEFAULT_ACCENT_COLOR
        return normalize_hex_color(value)

    @field_validator("font_family", "layout", mode="before")
    @classmethod
    def _lower(cls, value, info):
        # Blank picks fall back to the field default.
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return value.lower() if isinstance(value, str) else value


class Totals(BaseModel):
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0


class Client(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""
    company: str = ""
    address: str = ""
    status: Literal["active", "inactive"] = "active"
    total_spent: float = Field(
        default=0.0,
        validation_alias=AliasChoices("total_spent", "totalSpent"),
    )
    last_contact: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("last_contact", "lastContact"),
    )
    notes: str = ""

    @field_validator("email", "phone", "company", "address", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("total_spent", mode="before")
    @classmethod
    def _coerce_spent(cls, value):
        return to_float(value)


class Document(BaseModel):
    id: str = Field(default_factory=_new_id)
    client_id: str = Field(
        default="",
        validation_alias=AliasChoices("client_id", "clientId"),
    )
    type: DocumentType = "invoice"
    status: DocumentStatus = "draft"
    items: List[LineItem] = []
    issue_date: date = Field(
        default_factory=date.today,
        validation_alias=AliasChoices("issue_date", "issueDate", "date"),
    )
    due_date: date = Field(
        default_factory=lambda: date.today() + timedelta(days=7),
        validation_alias=AliasChoices("due_date", "dueDate"),
    )
    notes: Optional[str] = None
    design: DocumentDesign = Field(default_factory=DocumentDesign)

    @field_validator("design", mode="before")
    @classmethod
    def _default_design(cls, value):
        # Older records were saved without a design.
        return DocumentDesign() if value is None else value

    @property
    def totals(self) -> Totals:
        from documents import compute_totals
        return compute_totals(self.items)

    @computed_field
    @property
    def subtotal(self) -> float:
        return self.totals.subtotal

    @computed_field
    @property
    def tax(self) -> float:
        return self.totals.tax

    @computed_field
    @property
    def total(self) -> float:
        return self.totals.total


# ── Draw instructions ──────────────────────────────────────────────────────────
# Millimetres on an A4 page, origin top-left; text y is the baseline.

class TextInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    page: int = 1
    x: float
    y: float
    text: str
    font: FontFamily = "helvetica"
    style: FontStyle = "normal"
    size: float = 10
    color: str = "#000000"
    align: TextAlign = "left"


class RectInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["rect"] = "rect"
    page: int = 1
    x: float
    y: float
    width: float
    height: float
    fill_color: str


class LineInstruction(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["line"] = "line"
    page: int = 1
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    width: float = 0.5


Instruction = Annotated[
    Union[TextInstruction, RectInstruction, LineInstruction],
    Field(discriminator="kind"),
]


# ── API payloads ───────────────────────────────────────────────────────────────

class RenderRequest(BaseModel):
    document: Document
    client: Optional[Client] = None
    business_name: Optional[str] = None


class RenderResponse(BaseModel):
    filename: str
    pages: int
    totals: Totals
    instructions: List[Instruction]


class Workspace(BaseModel):
    documents: List[Document] = []
    clients: List[Client] = []


class BusinessSummary(BaseModel):
    total_revenue: float = 0.0
    pending_revenue: float = 0.0
    active_clients: int = 0
    document_count: int = 0
    overdue_count: int = 0


class EmailRequest(BaseModel):
    recipient: str
    purpose: str
    tone: str = "Professional"
    context: str = ""


class DocumentNotesRequest(BaseModel):
    type: DocumentType = "invoice"
    client_name: str = "Client"
    items: List[LineItem] = []


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatRequest(BaseModel):
    message: str
    history: List[ChatMessage] = []


class AIResponse(BaseModel):
    text: str


class HealthResponse(BaseModel):
    status: str
    provider: str
    model: str
    ai_configured: bool
    version: str
