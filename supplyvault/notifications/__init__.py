from supplyvault.notifications.email import EmailNotifier, SendResult

__all__ = ["EmailNotifier", "SendResult"]
