from supplyvault.gmail.client import GmailAPIError, GmailClient, base64url_to_base64
from supplyvault.gmail.crypto import TokenCipher
from supplyvault.gmail.poller import GmailPoller, poll_accounts

__all__ = [
    "GmailAPIError",
    "GmailClient",
    "GmailPoller",
    "TokenCipher",
    "base64url_to_base64",
    "poll_accounts",
]
