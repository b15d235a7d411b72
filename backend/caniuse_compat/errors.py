"""Exception taxonomy for the compatibility engine"""


class CompatError(Exception):
    """Base class for all compatibility engine errors"""


class DataUnavailableError(CompatError):
    """Support data could not be fetched or came back empty"""

    def __init__(self, feature: str, reason: str):
        self.feature = feature
        self.reason = reason
        super().__init__(f"Error fetching caniuse data for {feature}: {reason}")


class ConfigUsageError(CompatError):
    """A mutating action was called without the parameters it needs"""

    def __init__(self, action: str, message: str):
        self.action = action
        super().__init__(message)
