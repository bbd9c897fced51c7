from smartreceipt.flow.router import Route, RouteKind, classify, normalize
from smartreceipt.flow.states import ConversationState


def test_normalize_strips_slash_case_and_aliases():
    assert normalize("  /NewReceipt ") == "new receipt"
    assert normalize("/addproduct") == "add product"
    assert normalize("HISTORY") == "history"
    assert normalize("/help") == "commands"


def test_commands_take_precedence_over_an_active_session():
    route = classify("history", ConversationState.RECEIPT_ITEMS, is_admin=False, has_profile=True)
    assert route == Route(RouteKind.COMMAND, "history")


def test_free_text_inside_a_session_is_scoped_input():
    route = classify("Rice, Beans", ConversationState.RECEIPT_ITEMS, is_admin=False, has_profile=True)
    assert route.kind == RouteKind.SCOPED_INPUT


def test_idle_user_without_profile_goes_to_onboarding():
    assert classify("hello", None, is_admin=False, has_profile=False).kind == RouteKind.ONBOARDING


def test_idle_user_with_profile_gets_the_greeting():
    assert classify("hello", None, is_admin=False, has_profile=True).kind == RouteKind.IDLE


def test_parametrized_commands_keep_argument_casing():
    route = classify('remove product "Fanta Orange"', None, is_admin=False, has_profile=True)
    assert route == Route(RouteKind.COMMAND, "remove product", '"Fanta Orange"')

    route = classify("restore a1b2c3d4", None, is_admin=False, has_profile=False)
    assert route == Route(RouteKind.COMMAND, "restore", "a1b2c3d4")

    route = classify("stats 2026-09", None, is_admin=False, has_profile=True)
    assert route == Route(RouteKind.COMMAND, "stats", "2026-09")


def test_parametrized_command_without_argument():
    assert classify("export", None, is_admin=False, has_profile=True) == Route(RouteKind.COMMAND, "export", "")


def test_command_prefix_inside_a_word_is_not_a_command():
    route = classify("statsbury", ConversationState.RECEIPT_CUSTOMER_NAME, is_admin=False, has_profile=True)
    assert route.kind == RouteKind.SCOPED_INPUT


def test_support_is_its_own_route():
    route = classify("Support", ConversationState.RECEIPT_ITEMS, is_admin=False, has_profile=True)
    assert route.kind == RouteKind.SUPPORT_COMMAND


def test_admin_commands_only_for_admins():
    assert classify("tickets", None, is_admin=True, has_profile=True) == Route(RouteKind.ADMIN_COMMAND, "tickets")
    assert classify("tickets", None, is_admin=False, has_profile=True).kind == RouteKind.IDLE

    route = classify("reply TABC Thanks, fixed!", None, is_admin=True, has_profile=True)
    assert route == Route(RouteKind.ADMIN_COMMAND, "reply", "TABC Thanks, fixed!")

    route = classify("close tabc", None, is_admin=True, has_profile=True)
    assert route == Route(RouteKind.ADMIN_COMMAND, "close", "tabc")


def test_close_ticket_inside_support_belongs_to_the_thread():
    for is_admin in (False, True):
        route = classify("Close Ticket", ConversationState.IN_SUPPORT_CONVERSATION, is_admin=is_admin, has_profile=True)
        assert route.kind == RouteKind.SCOPED_INPUT


def test_close_ticket_outside_support_for_admin_is_close_command():
    route = classify("close ticket", None, is_admin=True, has_profile=True)
    assert route == Route(RouteKind.ADMIN_COMMAND, "close", "ticket")
