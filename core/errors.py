# -*- coding: utf-8 -*-


class PomoError(Exception):
    """Base error for the timer."""


class ConfigurationError(PomoError):
    """Invalid user input or configuration.

    Raised before any timer starts; fatal to the session being built.
    """


class NotificationDeliveryError(PomoError):
    """The notification channel is unavailable.

    Always logged and swallowed by the dispatcher, never fatal.
    """

    def __init__(self, backend: str, original_error: Exception) -> None:
        super().__init__(f"{backend} notification failed: {original_error}")
        self.backend = backend
        self.original_error = original_error


class StateTransitionError(PomoError):
    """A command or write that is not valid in the current state."""
