"""
smartreceipt/flow/router.py

Purpose: Command Router

- Normalizes text (trim, lower-case, Telegram "/" prefix, aliases)
- Classifies it as admin command, support, top-level command,
  scoped input for the active state, onboarding or idle
- Commands always take precedence over an active session
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from smartreceipt.flow.states import ConversationState, FlowFamily, get_family
from smartreceipt.utils.constants import (
    ADMIN_COMMANDS,
    ADMIN_PARAMETRIZED_COMMANDS,
    CLOSE_TICKET_KEYWORD,
    CMD_SUPPORT,
    COMMAND_ALIASES,
    PARAMETRIZED_COMMANDS,
    TOP_LEVEL_COMMANDS,
)


class RouteKind(str, Enum):
    ADMIN_COMMAND = "admin_command"
    SUPPORT_COMMAND = "support_command"
    COMMAND = "command"
    SCOPED_INPUT = "scoped_input"
    ONBOARDING = "onboarding"
    IDLE = "idle"


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    command: Optional[str] = None
    argument: str = ""


def normalize(text: str) -> str:
    """
    "  /NewReceipt " -> "new receipt"
    """
    normalized = (text or "").strip().lower()
    if normalized.startswith("/"):
        normalized = normalized[1:].lstrip()
    return COMMAND_ALIASES.get(normalized, normalized)


def _strip_slash(text: str) -> str:
    stripped = (text or "").strip()
    return stripped[1:].lstrip() if stripped.startswith("/") else stripped


def _match_parametrized(normalized: str, raw: str, commands) -> Optional[Route]:
    """
    Prefix match for commands that take an argument.
    The argument keeps the sender's original casing.
    """
    for command in commands:
        if normalized == command:
            return Route(RouteKind.COMMAND, command, "")
        match = re.match(rf"{re.escape(command)}\s+(.*)$", raw, re.IGNORECASE | re.DOTALL)
        if match:
            return Route(RouteKind.COMMAND, command, match.group(1).strip())
    return None


def classify(
    text: str,
    state: Optional[ConversationState],
    is_admin: bool,
    has_profile: bool,
) -> Route:
    """
    Decides how one inbound message is handled.

    Args:
        text: Raw message text
        state: Current session state (None when idle)
        is_admin: Sender is in the admin allow-list
        has_profile: Sender already has a profile

    Returns:
        The route; commands carry their name and argument
    """
    normalized = normalize(text)
    raw = _strip_slash(text)

    # "close ticket" inside a support thread belongs to the thread, even for admins
    in_support = state is not None and get_family(state) == FlowFamily.SUPPORT
    if in_support and normalized == CLOSE_TICKET_KEYWORD:
        return Route(RouteKind.SCOPED_INPUT)

    if is_admin:
        if normalized in ADMIN_COMMANDS:
            return Route(RouteKind.ADMIN_COMMAND, normalized)
        route = _match_parametrized(normalized, raw, ADMIN_PARAMETRIZED_COMMANDS)
        if route:
            return Route(RouteKind.ADMIN_COMMAND, route.command, route.argument)

    if normalized == CMD_SUPPORT:
        return Route(RouteKind.SUPPORT_COMMAND, CMD_SUPPORT)

    route = _match_parametrized(normalized, raw, PARAMETRIZED_COMMANDS)
    if route:
        return route

    if normalized in TOP_LEVEL_COMMANDS:
        return Route(RouteKind.COMMAND, normalized)

    if state is not None:
        return Route(RouteKind.SCOPED_INPUT)
    if not has_profile:
        return Route(RouteKind.ONBOARDING)
    return Route(RouteKind.IDLE)
