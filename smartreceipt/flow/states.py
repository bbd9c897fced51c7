"""
smartreceipt/flow/states.py

Purpose: Defines all conversation states

- Closed set of state tags persisted in the conversations collection
- Flow family of each state (selects the draft shape)
- Onboarding step metadata for progress hints
"""

from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass


class ConversationState(str, Enum):
    """
    Every state a session document can be in.
    Values are the strings stored in MongoDB.
    """

    # Onboarding
    AWAITING_BRAND_NAME = "awaiting_brand_name"
    AWAITING_BRAND_COLOR = "awaiting_brand_color"
    AWAITING_LOGO = "awaiting_logo"
    AWAITING_ADDRESS = "awaiting_address"
    AWAITING_CONTACT_INFO = "awaiting_contact_info"

    # Receipt creation
    RECEIPT_CUSTOMER_NAME = "receipt_customer_name"
    RECEIPT_ITEMS = "receipt_items"
    RECEIPT_MANUAL_PRICES = "receipt_manual_prices"
    RECEIPT_PAYMENT_METHOD = "receipt_payment_method"
    AWAITING_INITIAL_FORMAT_CHOICE = "awaiting_initial_format_choice"

    # Editing
    AWAITING_EDIT_CHOICE = "awaiting_edit_choice"
    EDITING_CUSTOMER_NAME = "editing_customer_name"
    EDITING_ITEMS = "editing_items"
    EDITING_PRICES = "editing_prices"
    EDITING_PAYMENT_METHOD = "editing_payment_method"

    # Catalog
    ADDING_PRODUCT_NAME = "adding_product_name"
    ADDING_PRODUCT_PRICE = "adding_product_price"

    # Brand and preferences
    AWAITING_MYBRAND_CHOICE = "awaiting_mybrand_choice"
    UPDATING_BRAND_NAME = "updating_brand_name"
    UPDATING_BRAND_COLOR = "updating_brand_color"
    UPDATING_LOGO = "updating_logo"
    UPDATING_ADDRESS = "updating_address"
    UPDATING_CONTACT_INFO = "updating_contact_info"
    AWAITING_FORMAT_CHOICE = "awaiting_format_choice"
    AWAITING_TEMPLATE_CHOICE = "awaiting_template_choice"

    # History
    AWAITING_HISTORY_CHOICE = "awaiting_history_choice"

    # Paywall
    AWAITING_PAYMENT_DECISION = "awaiting_payment_decision"

    # Support
    AWAITING_SUPPORT_MESSAGE = "awaiting_support_message"
    IN_SUPPORT_CONVERSATION = "in_support_conversation"

    # Admin settings
    ADMIN_SETTINGS_MENU = "admin_settings_menu"
    ADMIN_SETTINGS_CONFIRM = "admin_settings_confirm"


class FlowFamily(str, Enum):
    """Groups of states that share one draft shape."""

    ONBOARDING = "onboarding"
    RECEIPT = "receipt"
    EDIT = "edit"
    CATALOG = "catalog"
    BRAND = "brand"
    HISTORY = "history"
    PAYWALL = "paywall"
    SUPPORT = "support"
    ADMIN = "admin"


S = ConversationState

STATE_FAMILIES: Dict[ConversationState, FlowFamily] = {
    S.AWAITING_BRAND_NAME: FlowFamily.ONBOARDING,
    S.AWAITING_BRAND_COLOR: FlowFamily.ONBOARDING,
    S.AWAITING_LOGO: FlowFamily.ONBOARDING,
    S.AWAITING_ADDRESS: FlowFamily.ONBOARDING,
    S.AWAITING_CONTACT_INFO: FlowFamily.ONBOARDING,
    S.RECEIPT_CUSTOMER_NAME: FlowFamily.RECEIPT,
    S.RECEIPT_ITEMS: FlowFamily.RECEIPT,
    S.RECEIPT_MANUAL_PRICES: FlowFamily.RECEIPT,
    S.RECEIPT_PAYMENT_METHOD: FlowFamily.RECEIPT,
    S.AWAITING_INITIAL_FORMAT_CHOICE: FlowFamily.RECEIPT,
    S.AWAITING_EDIT_CHOICE: FlowFamily.EDIT,
    S.EDITING_CUSTOMER_NAME: FlowFamily.EDIT,
    S.EDITING_ITEMS: FlowFamily.EDIT,
    S.EDITING_PRICES: FlowFamily.EDIT,
    S.EDITING_PAYMENT_METHOD: FlowFamily.EDIT,
    S.ADDING_PRODUCT_NAME: FlowFamily.CATALOG,
    S.ADDING_PRODUCT_PRICE: FlowFamily.CATALOG,
    S.AWAITING_MYBRAND_CHOICE: FlowFamily.BRAND,
    S.UPDATING_BRAND_NAME: FlowFamily.BRAND,
    S.UPDATING_BRAND_COLOR: FlowFamily.BRAND,
    S.UPDATING_LOGO: FlowFamily.BRAND,
    S.UPDATING_ADDRESS: FlowFamily.BRAND,
    S.UPDATING_CONTACT_INFO: FlowFamily.BRAND,
    S.AWAITING_FORMAT_CHOICE: FlowFamily.BRAND,
    S.AWAITING_TEMPLATE_CHOICE: FlowFamily.BRAND,
    S.AWAITING_HISTORY_CHOICE: FlowFamily.HISTORY,
    S.AWAITING_PAYMENT_DECISION: FlowFamily.PAYWALL,
    S.AWAITING_SUPPORT_MESSAGE: FlowFamily.SUPPORT,
    S.IN_SUPPORT_CONVERSATION: FlowFamily.SUPPORT,
    S.ADMIN_SETTINGS_MENU: FlowFamily.ADMIN,
    S.ADMIN_SETTINGS_CONFIRM: FlowFamily.ADMIN,
}


@dataclass
class StepMetadata:
    """
    Position of an onboarding state in the setup sequence.
    """
    state: ConversationState
    step_number: int
    total_steps: int = 5
    optional: bool = False


ONBOARDING_STEPS: Dict[ConversationState, StepMetadata] = {
    S.AWAITING_BRAND_NAME: StepMetadata(S.AWAITING_BRAND_NAME, 1),
    S.AWAITING_BRAND_COLOR: StepMetadata(S.AWAITING_BRAND_COLOR, 2),
    S.AWAITING_LOGO: StepMetadata(S.AWAITING_LOGO, 3, optional=True),
    S.AWAITING_ADDRESS: StepMetadata(S.AWAITING_ADDRESS, 4),
    S.AWAITING_CONTACT_INFO: StepMetadata(S.AWAITING_CONTACT_INFO, 5),
}


def parse_state(value: Optional[str]) -> Optional[ConversationState]:
    """
    Converts a stored state string to the enum.

    Returns None for unknown values so callers can treat the session as stale.
    """
    if not value:
        return None
    try:
        return ConversationState(value)
    except ValueError:
        return None


def get_family(state: ConversationState) -> FlowFamily:
    return STATE_FAMILIES[state]


def get_progress_message(state: ConversationState) -> str:
    """
    Generates a progress hint for onboarding states (e.g. "Step 2 of 5").
    """
    metadata = ONBOARDING_STEPS.get(state)
    if metadata is None:
        return ""
    return f"📍 Step {metadata.step_number} of {metadata.total_steps}"
