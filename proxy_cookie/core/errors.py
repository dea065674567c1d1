class ConfigurationError(ValueError):
    """Raised when cookie rewrite rules cannot be built from configuration."""


class CapabilityNotSupported(RuntimeError):
    """Raised when the app sends a response message the server did not advertise."""

    def __init__(self, message_type: str):
        super().__init__(
            f"server does not support the '{message_type}' extension; "
            f"message cannot be forwarded"
        )
        self.message_type = message_type
