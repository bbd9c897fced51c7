"""
smartreceipt/schemas/drafts.py

Purpose: Typed session drafts

- One draft model per flow family, selected by the session's state
- Stored as the session's `data` sub-document with a `kind` tag
- Loading a draft that does not fit its state raises StateConsistencyError
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from smartreceipt.core.exceptions import StateConsistencyError
from smartreceipt.flow.states import ConversationState, FlowFamily, get_family


class OnboardingDraft(BaseModel):
    kind: Literal["onboarding"] = "onboarding"


class ReceiptDraft(BaseModel):
    """
    In-progress receipt. Catalog matches land in quick_add_*; everything
    else waits in manual_items until its prices arrive.
    """
    kind: Literal["receipt"] = "receipt"
    customer_name: Optional[str] = None
    items: List[str] = Field(default_factory=list)
    prices: List[str] = Field(default_factory=list)
    payment_method: Optional[str] = None
    manual_items: List[str] = Field(default_factory=list)
    quick_add_items: List[str] = Field(default_factory=list)
    quick_add_prices: List[str] = Field(default_factory=list)


class EditDraft(BaseModel):
    """Copy of the receipt being edited plus its identity."""
    kind: Literal["edit"] = "edit"
    receipt_id: str
    customer_name: str
    items: List[str] = Field(default_factory=list)
    prices: List[str] = Field(default_factory=list)
    payment_method: str = ""
    edit_count: int = 0
    created_at: Optional[datetime] = None


class CatalogDraft(BaseModel):
    kind: Literal["catalog"] = "catalog"
    new_product_name: Optional[str] = None


class BrandDraft(BaseModel):
    kind: Literal["brand"] = "brand"


class HistoryDraft(BaseModel):
    kind: Literal["history"] = "history"
    receipt_ids: List[str] = Field(default_factory=list)


class PaywallDraft(BaseModel):
    kind: Literal["paywall"] = "paywall"
    blocked_command: Optional[str] = None


class TicketRef(BaseModel):
    kind: Literal["support"] = "support"
    ticket_id: Optional[str] = None


class AdminSettingsDraft(BaseModel):
    kind: Literal["admin"] = "admin"
    pending_registrations_open: Optional[bool] = None


Draft = Union[
    OnboardingDraft,
    ReceiptDraft,
    EditDraft,
    CatalogDraft,
    BrandDraft,
    HistoryDraft,
    PaywallDraft,
    TicketRef,
    AdminSettingsDraft,
]

DRAFT_TYPES: Dict[FlowFamily, Type[BaseModel]] = {
    FlowFamily.ONBOARDING: OnboardingDraft,
    FlowFamily.RECEIPT: ReceiptDraft,
    FlowFamily.EDIT: EditDraft,
    FlowFamily.CATALOG: CatalogDraft,
    FlowFamily.BRAND: BrandDraft,
    FlowFamily.HISTORY: HistoryDraft,
    FlowFamily.PAYWALL: PaywallDraft,
    FlowFamily.SUPPORT: TicketRef,
    FlowFamily.ADMIN: AdminSettingsDraft,
}


def draft_type_for(state: ConversationState) -> Type[BaseModel]:
    return DRAFT_TYPES[get_family(state)]


def load_draft(state: ConversationState, data: Optional[dict]) -> Draft:
    """
    Builds the draft model for `state` from a stored `data` document.

    Raises:
        StateConsistencyError: stored data belongs to another flow or is malformed
    """
    model = draft_type_for(state)
    payload = dict(data or {})
    expected_kind = model.model_fields["kind"].default
    stored_kind = payload.get("kind", expected_kind)
    if stored_kind != expected_kind:
        raise StateConsistencyError(
            f"Draft of kind '{stored_kind}' stored under state '{state.value}'"
        )
    payload["kind"] = expected_kind
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise StateConsistencyError(
            f"Malformed draft for state '{state.value}'",
            details=e.errors(include_url=False),
        ) from e


class ConversationSession(BaseModel):
    """The single persisted session of one user."""
    user_id: str
    state: ConversationState
    data: Draft
    updated_at: Optional[datetime] = None
