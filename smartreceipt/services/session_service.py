"""
smartreceipt/services/session_service.py

Purpose: Session and state management

- Loads the user's single session document and its typed draft
- Starts/overwrites a session on every transition (upsert on user_id)
- Deletes the session when a flow completes, is cancelled or interrupted
"""

from datetime import datetime
from typing import Optional

from smartreceipt.db.mongo import get_conversations_collection
from smartreceipt.flow.states import ConversationState, parse_state
from smartreceipt.schemas.drafts import ConversationSession, Draft, draft_type_for, load_draft
from smartreceipt.core.exceptions import StateConsistencyError
from smartreceipt.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def get_session(user_id: str) -> Optional[ConversationSession]:
    """
    Retrieves the user's active session.

    Args:
        user_id: Channel-scoped identity

    Returns:
        The session, or None if the user is idle

    Raises:
        StateConsistencyError: stored state tag is unknown or its draft is malformed
    """
    conversations = get_conversations_collection()
    doc = await conversations.find_one({"user_id": user_id})
    if not doc:
        return None

    state = parse_state(doc.get("state"))
    if state is None:
        raise StateConsistencyError(f"Unknown state '{doc.get('state')}'")

    return ConversationSession(
        user_id=user_id,
        state=state,
        data=load_draft(state, doc.get("data")),
        updated_at=doc.get("updated_at"),
    )


async def save_session(
    user_id: str,
    state: ConversationState,
    data: Optional[Draft] = None
) -> ConversationSession:
    """
    Moves the user into `state`, replacing any previous session.

    Args:
        user_id: Channel-scoped identity
        state: Target state
        data: Draft for the state's flow family (empty draft if omitted)

    Returns:
        The saved session
    """
    if data is None:
        data = draft_type_for(state)()

    expected = draft_type_for(state)
    if not isinstance(data, expected):
        raise StateConsistencyError(
            f"{type(data).__name__} cannot be stored under state '{state.value}'"
        )

    with LogContext(user_id=user_id, state=state.value):
        conversations = get_conversations_collection()
        now = datetime.utcnow()
        await conversations.update_one(
            {"user_id": user_id},
            {
                "$set": {
                    "user_id": user_id,
                    "state": state.value,
                    "data": data.model_dump(),
                    "updated_at": now,
                }
            },
            upsert=True,
        )
        logger.debug("Session saved")

    return ConversationSession(user_id=user_id, state=state, data=data, updated_at=now)


async def clear_session(user_id: str) -> bool:
    """
    Deletes the user's session.

    Returns:
        True if a session existed
    """
    conversations = get_conversations_collection()
    result = await conversations.delete_one({"user_id": user_id})

    cleared = result.deleted_count > 0
    if cleared:
        logger.debug("Session cleared", extra={"user_id": user_id})
    return cleared
