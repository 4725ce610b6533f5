TOKEN_HELP_URL = "https://app.ynab.com/settings/developer"


class YnabAssistantError(Exception):
    """Base class for every error raised by ynab_assistant."""


class ConfigurationError(YnabAssistantError):
    """Required configuration (usually the access token) is missing."""

    def __init__(self, message: str, remediation: str | None = None):
        super().__init__(message)
        self.remediation = remediation


class ValidationError(YnabAssistantError):
    """Input to a normalization function or command was malformed."""


class UnknownCommandError(ValidationError):
    def __init__(self, command: str):
        super().__init__(f"Unknown command: {command}")
        self.command = command


class RemoteError(YnabAssistantError):
    """The YNAB API (or the network in front of it) reported a failure."""

    def __init__(self, name: str, detail: str, status_code: int | None = None):
        super().__init__(f"{name}: {detail}")
        self.name = name
        self.detail = detail
        self.status_code = status_code


def missing_token_error() -> ConfigurationError:
    return ConfigurationError(
        "YNAB_ACCESS_TOKEN environment variable is required",
        remediation=(
            f"Get your token from: {TOKEN_HELP_URL}\n"
            "Usage: YNAB_ACCESS_TOKEN=your_token ynab-assistant <command>"
        ),
    )
