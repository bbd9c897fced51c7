"""
smartreceipt/utils/constants.py

Purpose: Centralized static content

- All user-facing messages
- Command vocabulary
- Randomized reply pools

(Prevents hardcoding across the codebase)
"""

CURRENCY = "₦"

# ============================================================
# COMMAND VOCABULARY
# ============================================================

CMD_NEW_RECEIPT = "new receipt"
CMD_EDIT = "edit"
CMD_HISTORY = "history"
CMD_STATS = "stats"
CMD_EXPORT = "export"
CMD_PRODUCTS = "products"
CMD_ADD_PRODUCT = "add product"
CMD_REMOVE_PRODUCT = "remove product"
CMD_MYBRAND = "mybrand"
CMD_FORMAT = "format"
CMD_CHANGE_RECEIPT = "changereceipt"
CMD_BACKUP = "backup"
CMD_RESTORE = "restore"
CMD_COMMANDS = "commands"
CMD_CANCEL = "cancel"
CMD_SUPPORT = "support"

CMD_TICKETS = "tickets"
CMD_REPLY = "reply"
CMD_CLOSE = "close"
CMD_SETTINGS = "settings"

# Exact-match top-level commands
TOP_LEVEL_COMMANDS = (
    CMD_NEW_RECEIPT, CMD_EDIT, CMD_HISTORY, CMD_STATS, CMD_EXPORT,
    CMD_PRODUCTS, CMD_ADD_PRODUCT, CMD_MYBRAND, CMD_FORMAT,
    CMD_CHANGE_RECEIPT, CMD_BACKUP, CMD_RESTORE, CMD_COMMANDS, CMD_CANCEL,
)

# Commands that take an argument after a space
PARAMETRIZED_COMMANDS = (CMD_REMOVE_PRODUCT, CMD_RESTORE, CMD_STATS, CMD_EXPORT)

ADMIN_COMMANDS = (CMD_TICKETS, CMD_SETTINGS)
ADMIN_PARAMETRIZED_COMMANDS = (CMD_REPLY, CMD_CLOSE)

PREMIUM_COMMANDS = (CMD_NEW_RECEIPT, CMD_EDIT, CMD_EXPORT)

# Commands a user without a profile may run
PROFILELESS_COMMANDS = (CMD_RESTORE, CMD_CANCEL, CMD_COMMANDS)

# Telegram-style single-word spellings
COMMAND_ALIASES = {
    "newreceipt": CMD_NEW_RECEIPT,
    "addproduct": CMD_ADD_PRODUCT,
    "help": CMD_COMMANDS,
}

SKIP_KEYWORD = "skip"
DONE_KEYWORD = "done"
CLOSE_TICKET_KEYWORD = "close ticket"

# ============================================================
# REPLY POOLS
# ============================================================

POOL_INVALID_CHOICE = "invalid_choice"
POOL_UPDATE_SUCCESS = "update_success"

REPLY_POOLS = {
    POOL_INVALID_CHOICE: (
        "Invalid choice. Please try again.",
        "That's not a valid option. Please choose from the list.",
    ),
    POOL_UPDATE_SUCCESS: (
        "✅ Updated successfully!",
        "✅ All set!",
        "✅ Done. Your changes have been saved.",
    ),
}

# ============================================================
# GENERAL
# ============================================================

IDLE_GREETING = "Hi {brand_name}! Send 'commands' to see what I can do."
TECHNICAL_ERROR_MESSAGE = (
    "Sorry, a technical error occurred. Please try again or type 'support' to contact an admin."
)
CONFUSED_MESSAGE = "Sorry, I got confused. Let's start over."
ACTION_CANCELLED_MESSAGE = "Action cancelled."
REGISTRATIONS_CLOSED_MESSAGE = (
    "🚫 New registrations are closed at the moment. Please check back later."
)

COMMANDS_LIST_MESSAGE = (
    "Here are the available commands:\n\n"
    "*new receipt* - Start a new receipt.\n"
    "*edit* - Edit the last receipt.\n"
    "*history* - See your last 5 receipts.\n"
    "*stats* - View sales stats for the month.\n"
    "*export* - Get a text file of this month's sales.\n\n"
    "_*Catalog Management*_\n"
    "*products* - View saved products.\n"
    "*add product* - Add a new product.\n"
    "*remove product \"Name\"* - Remove a product.\n\n"
    "_*Settings*_\n"
    "*mybrand* - Update your brand details.\n"
    "*changereceipt* - Change receipt template.\n"
    "*format* - Set receipt format (PNG/PDF).\n"
    "*backup* - Get a recovery code.\n"
    "*restore [code]* - Restore your account.\n"
    "*support* - Talk to an admin.\n"
    "*cancel* - Stop any current action."
)

ADMIN_COMMANDS_SUFFIX = (
    "\n\n_*Admin*_\n"
    "*tickets* - List open support tickets.\n"
    "*reply [ID] [message]* - Reply to a ticket.\n"
    "*close [ID]* - Close a ticket.\n"
    "*settings* - Bot settings."
)

# ============================================================
# ONBOARDING
# ============================================================

WELCOME_NEW_USER_MESSAGE = (
    "👋 Welcome! It looks like you're new here. Let's set up your brand first.\n\n"
    "What is your business name?"
)
ASK_BRAND_COLOR_MESSAGE = (
    "Great! Your brand is \"{brand_name}\".\n\n"
    "What's your brand's main color? (e.g., #1D4ED8 or \"blue\")"
)
ASK_LOGO_MESSAGE = (
    "Color saved!\n\nNow, please upload your business logo. "
    "If you don't have one, just type *'skip'*."
)
LOGO_RECEIVED_MESSAGE = "Logo received! Uploading now, please wait..."
LOGO_UPLOADED_MESSAGE = "Logo uploaded successfully!"
LOGO_UPLOAD_FAILED_ONBOARDING_MESSAGE = (
    "Sorry, I couldn't upload the logo. We'll proceed without it for now."
)
LOGO_NOT_IMAGE_MESSAGE = "That's not an image. Please upload a logo file or type 'skip'."
ASK_ADDRESS_MESSAGE = "Logo step complete.\n\nNext, what is your business address?"
ASK_CONTACT_MESSAGE = (
    "Address saved.\n\nFinally, what contact info should be on the receipt? "
    "(e.g., a phone number, an email, or both)"
)
ONBOARDING_COMPLETE_MESSAGE = (
    "✅ *Setup Complete!* Your brand profile is all set.\n\n"
    "To create your first receipt, just type:\n*'new receipt'*"
)

# ============================================================
# RECEIPT CREATION
# ============================================================

NEW_RECEIPT_MESSAGE = "🧾 *New Receipt Started*\n\nWho is the customer?"
ASK_ITEMS_WITH_CATALOG_MESSAGE = (
    "Customer: *{customer_name}*\n\n"
    "Now, add items. You can use your catalog (e.g., _Fanta x2_) or type items manually.\n\n"
    "*(Separate with commas or list on new lines)*"
)
ASK_ITEMS_MESSAGE = (
    "Customer: *{customer_name}*\n\n"
    "What item(s) did they purchase?\n\n"
    "*(Separate with commas or list on new lines)*"
)
NO_ITEMS_MESSAGE = "I didn't catch any items. Please list them, separated by commas or on new lines."
ASK_MANUAL_PRICES_MESSAGE = (
    "Now, please enter the prices for your manual items, "
    "*each on a new line or separated by commas*:\n\n*{manual_items}*"
)
PRICE_COUNT_MISMATCH_MESSAGE = (
    "The number of prices does not match the number of manual items. Please try again."
)
PRICE_NOT_NUMERIC_MESSAGE = "\"{value}\" is not a valid price. Please send numbers only."
CATALOG_ITEMS_ADDED_MESSAGE = "Items and prices added from your catalog.\n\nWhat was the payment method?"
PRICES_SAVED_MESSAGE = "Prices saved.\n\nWhat was the payment method?"
INITIAL_FORMAT_MESSAGE = (
    "Payment method saved.\n\nOne last thing for your first receipt! What's your preferred format?\n\n"
    "*1. Image (PNG)*\n_Good for quick sharing._\n\n"
    "*2. Document (PDF)*\n_Best for official records._\n\n"
    "Please reply with *1* or *2*."
)

# ============================================================
# RECEIPT PIPELINE
# ============================================================

GENERATING_RECEIPT_MESSAGE = "✅ Got it! Generating your receipt..."
RESENDING_RECEIPT_MESSAGE = "✅ Got it! Recreating that receipt for you..."
RECEIPT_CAPTION = "Here is the receipt for {customer_name}."
RENDER_FAILED_MESSAGE = (
    "Sorry, a technical error occurred while creating the receipt file. Please try again."
)

# ============================================================
# EDITING
# ============================================================

NO_RECEIPT_TO_EDIT_MESSAGE = "You don't have any recent receipts to edit."
EDIT_LIMIT_REACHED_MESSAGE = (
    "This receipt has reached its free edit limit of {limit} changes. "
    "Please subscribe for unlimited edits."
)
EDIT_MENU_MESSAGE = (
    "Let's edit your last receipt (for *{customer_name}*).\n\n"
    "What would you like to change?\n"
    "*1.* Customer Name\n*2.* Items & Prices\n*3.* Payment Method"
)
ASK_NEW_CUSTOMER_NAME_MESSAGE = "What is the new customer name?"
ASK_NEW_ITEMS_MESSAGE = "Please re-enter all items, *separated by commas or on new lines*."
ASK_NEW_PRICES_MESSAGE = "Items updated. Now, please re-enter all prices in the correct order."
ASK_NEW_PAYMENT_METHOD_MESSAGE = "What is the new payment method?"
EDIT_COUNT_MISMATCH_MESSAGE = (
    "The number of items and prices don't match. Please try editing again by typing 'edit'."
)
EDIT_RECEIPT_GONE_MESSAGE = "That receipt no longer exists, so the edit was cancelled."

# ============================================================
# CATALOG
# ============================================================

ADD_PRODUCT_MESSAGE = "Let's add a new product. What is the product's name? (Type 'done' when you finish)"
ASK_PRODUCT_PRICE_MESSAGE = "Got it. What's the price for *{name}*?"
INVALID_PRODUCT_PRICE_MESSAGE = "That's not a valid price. Please send only a number."
PRODUCT_SAVED_MESSAGE = (
    "✅ Saved: *{name}* - {price}.\n\n"
    "To add another, send the next product's name. When you're done, just type *'done'*"
)
CATALOG_DONE_MESSAGE = "Great! Your products have been saved to your catalog."
NO_PRODUCTS_MESSAGE = "You haven't added any products. Use 'add product' to start."
PRODUCT_LIST_HEADER = "📦 *Your Product Catalog*\n\n"
PRODUCT_REMOVED_MESSAGE = "🗑️ Product \"*{name}*\" has been removed."
PRODUCT_NOT_FOUND_MESSAGE = "Could not find a product named \"*{name}*\"."
REMOVE_PRODUCT_USAGE_MESSAGE = 'Invalid format. Please use: `remove product "Product Name"`'

# ============================================================
# BRAND & PREFERENCES
# ============================================================

MYBRAND_MENU_MESSAGE = (
    "*Your Brand Settings*\n\nWhat would you like to update?\n"
    "*1.* Brand Name\n*2.* Brand Color\n*3.* Logo\n*4.* Address\n*5.* Contact Info"
)
ASK_NEW_BRAND_NAME_MESSAGE = "What is your new brand name?"
ASK_NEW_BRAND_COLOR_MESSAGE = "What is your new brand color?"
ASK_NEW_LOGO_MESSAGE = "Please upload your new logo."
ASK_NEW_ADDRESS_MESSAGE = "What is your new address?"
ASK_NEW_CONTACT_MESSAGE = "What is your new contact info?"
NEW_LOGO_RECEIVED_MESSAGE = "New logo received! Uploading..."
LOGO_UPDATED_MESSAGE = "✅ Logo updated successfully!"
LOGO_UPDATE_FAILED_MESSAGE = "Sorry, the logo upload failed."
LOGO_UPDATE_NOT_IMAGE_MESSAGE = "That's not an image. Please upload a logo file."

FORMAT_MENU_MESSAGE = "What format would you like your receipts in?\n\n*1.* Image (PNG)\n*2.* Document (PDF)"
INVALID_FORMAT_CHOICE_MESSAGE = "Invalid choice. Please reply with *1* for Image or *2* for Document."
FORMAT_SAVED_MESSAGE = "✅ Preference saved! Your receipts will now be generated as *{format}* files."
TEMPLATE_MENU_MESSAGE = "Please choose your new receipt template by sending its number (1-{count})."
INVALID_TEMPLATE_CHOICE_MESSAGE = "Invalid selection. Please send a single number between 1 and {count}."
TEMPLATE_SAVED_MESSAGE = "✅ Template #{template} is now your default."

# ============================================================
# HISTORY, STATS, EXPORT
# ============================================================

NO_RECEIPTS_MESSAGE = "You haven't generated any receipts yet."
HISTORY_HEADER = "🧾 *Your {count} Most Recent Receipts:*\n\n"
HISTORY_LINE = "*{index}.* For *{customer_name}* - {total}\n"
HISTORY_FOOTER = "\nTo resend a receipt, just reply with its number (1-{count})."
HISTORY_RECEIPT_MISSING_MESSAGE = "That receipt could not be found anymore."
STATS_MESSAGE = "📊 *Your Stats for {month}*\n\n*Receipts Generated:* {count}\n*Total Sales:* {total}"
INVALID_MONTH_MESSAGE = "Please give the month as YYYY-MM, for example: `stats 2026-09`."
EXPORT_GATHERING_MESSAGE = "Gathering your data for {month}. Please wait a moment..."
EXPORT_EMPTY_MESSAGE = "You have no receipts for {month} to export."
EXPORT_CAPTION = "Here is your sales data for {month}."

# ============================================================
# ACCOUNT
# ============================================================

BACKUP_REQUIRES_SETUP_MESSAGE = "You must complete setup before you can create a backup."
BACKUP_CODE_MESSAGE = (
    "🔒 *Your Account Backup Code*\n\nHere is your unique recovery code: *{code}*\n\n"
    "Keep this code safe! Use the 'restore' command on a new number to get your data back."
)
RESTORE_USAGE_MESSAGE = "Please provide a backup code. Example: `restore A1B2C3D4`"
RESTORE_INVALID_CODE_MESSAGE = "Sorry, that backup code is not valid."
RESTORE_SELF_MESSAGE = "This account is already linked to that backup code."
RESTORE_SUCCESS_MESSAGE = (
    "✅ *Account Restored!* Welcome back, {brand_name}. "
    "Your settings and subscription have been transferred."
)

# ============================================================
# PAYWALL
# ============================================================

PAYWALL_MESSAGE = (
    "Dear *{brand_name}*,\n\nYou have reached your limit of {limit} free receipts. "
    "To unlock unlimited access, please subscribe for just *{fee} for {months} months*.\n\n"
    "(Please reply *Yes* or *No*)"
)
GENERATING_ACCOUNT_MESSAGE = "Great! Generating a secure payment account for you now..."
VIRTUAL_ACCOUNT_MESSAGE = (
    "To get your {months}-month subscription for *{fee}*, please transfer to this account:\n\n"
    "*Bank:* {bank_name}\n*Account Number:* {account_number}\n\n"
    "Your access will be unlocked automatically after payment."
)
VIRTUAL_ACCOUNT_FAILED_MESSAGE = (
    "Sorry, I couldn't generate a payment account right now. Please contact support."
)
PAYMENT_PHONE_REQUIRED_MESSAGE = (
    "I need a Nigerian phone number to set up your payment account. "
    "Add one to your contact info with *mybrand* (option 5), then try again."
)
PAYWALL_DECLINED_MESSAGE = (
    "Okay, thank you for trying SmartReceipt! Your access is now limited. "
    "Feel free to come back if you change your mind."
)
PAYWALL_YES_NO_MESSAGE = "Please reply with just 'Yes' or 'No'."
PAYMENT_CONFIRMED_MESSAGE = (
    "🎉 Payment received! Your subscription is active until *{expiry}*. Thank you!"
)

# ============================================================
# SUPPORT
# ============================================================

SUPPORT_CONNECTED_MESSAGE = (
    "You are now connected to support. Please describe your issue, "
    "and an admin will get back to you shortly."
)
SUPPORT_RESUMED_MESSAGE = (
    "You already have an open ticket (*{ticket_id}*). "
    "Send your message and it will be added to that ticket. Type 'close ticket' when you're done."
)
TICKET_CREATED_MESSAGE = (
    "✅ Your support ticket has been created. Your Ticket ID is *{ticket_id}*. "
    "An admin will review your message shortly."
)
TICKET_MESSAGE_ADDED = "Your message has been added to the ticket."
TICKET_CLOSED_BY_USER_MESSAGE = (
    "Your support ticket has been successfully closed. "
    "Please feel free to reach out again if you need anything else!"
)
TICKET_NO_LONGER_OPEN_MESSAGE = "That ticket has been closed. Type 'support' to open a new one."
ADMIN_NEW_TICKET_NOTIFICATION = (
    "*New Support Ticket* 🔔\n\n*From Brand:* {brand_name}\n*Ticket ID:* `{ticket_id}`\n"
    "*User Message:* \"{message}\"\n\n_Reply with: `reply {ticket_id} [your message]`_"
)
ADMIN_TICKET_UPDATE_NOTIFICATION = (
    "💬 *Ticket {ticket_id}* ({brand_name}):\n\"{message}\""
)
NO_OPEN_TICKETS_MESSAGE = "There are no open support tickets."
OPEN_TICKETS_HEADER = "*Open Support Tickets*\n\n"
OPEN_TICKET_LINE = "*Brand:* {brand_name}\n*ID:* `{ticket_id}`\n*Last Msg:* \"{last_message}\"\n-----------------\n"
OPEN_TICKETS_FOOTER = "\nTo reply, use `reply [ID] [message]`"
REPLY_USAGE_MESSAGE = "Invalid format. Use: `reply [ID] [message]`"
CLOSE_USAGE_MESSAGE = "Please provide a Ticket ID to close."
TICKET_NOT_FOUND_MESSAGE = "Ticket not found."
TICKET_AMBIGUOUS_MESSAGE = "More than one ticket matches \"{fragment}\": {matches}. Please be more specific."
ADMIN_REPLY_TO_USER_MESSAGE = "An admin has replied to your ticket *{ticket_id}*:\n\n{message}"
ADMIN_REPLY_SENT_MESSAGE = "✅ Replied to ticket `{ticket_id}`."
ADMIN_REPLY_NOT_DELIVERED_MESSAGE = (
    "⚠️ Could not deliver your reply to ticket `{ticket_id}`. Nothing was logged, please try again."
)
TICKET_CLOSED_ADMIN_MESSAGE = "✅ Ticket `{ticket_id}` has been closed."
TICKET_CLOSED_OTHER_ADMINS_MESSAGE = "ℹ️ Ticket `{ticket_id}` was closed by an admin."
TICKET_CLOSED_USER_NOTICE = "ℹ️ Your support ticket *{ticket_id}* has been closed by an admin."
TICKET_ALREADY_CLOSED_MESSAGE = "Ticket `{ticket_id}` is already closed."

# ============================================================
# ADMIN SETTINGS
# ============================================================

ADMIN_SETTINGS_MENU_MESSAGE = (
    "⚙️ *Bot Settings*\n\n"
    "*1.* New registrations: *{status}* (toggle)\n\n"
    "Reply with the number of the setting to change."
)
ADMIN_SETTINGS_CONFIRM_MESSAGE = "Turn new registrations *{target}*? Reply *yes* or *no*."
ADMIN_SETTINGS_SAVED_MESSAGE = "✅ New registrations are now *{status}*."
ADMIN_SETTINGS_UNCHANGED_MESSAGE = "No changes made."
ADMIN_YES_NO_MESSAGE = "Please reply with *yes* or *no*."
