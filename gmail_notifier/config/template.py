"""Default configuration template.

This template is written to ~/.config/gmail-notifier/config.toml
when running `gmail-notifier config init`.
"""

CONFIG_TEMPLATE = """\
# gmail-notifier configuration

[defaults]
poll_interval = 60
inbox_page_size = 20
more_page_size = 10
unread_preview_size = 10
fetch_workers = 1
# Count every unread message instead of the first result page only.
exact_unread_count = false
unread_count_cap = 500
interactive_sign_in = true
log_level = "WARNING"

# OAuth client shared by all accounts.
# Get client_id and client_secret from Google Cloud Console OAuth credentials
# (application type "Desktop app").
# For client_secret, use the GMAIL_NOTIFIER_CLIENT_SECRET environment variable.
[oauth]
client_id = ""

[notifications]
# auto: desktop notifications when available, console otherwise
backend = "auto"

# After configuring the OAuth client, add accounts with:
#   gmail-notifier accounts add
"""
