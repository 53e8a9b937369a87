class LeadflowError(Exception):
    """Base class for all Leadflow domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except LeadflowError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class LeadNotFoundError(LeadflowError):
    """Raised when a requested lead does not exist in the organization."""

    def __init__(self, detail: str = "Lead not found"):
        super().__init__(detail)


class AppointmentNotFoundError(LeadflowError):
    """Raised when a requested appointment does not exist in the organization."""

    def __init__(self, detail: str = "Appointment not found"):
        super().__init__(detail)


class TransitionRuleNotFoundError(LeadflowError):
    """Raised when a requested transition rule does not exist."""

    def __init__(self, detail: str = "Transition rule not found"):
        super().__init__(detail)


class InvalidTransitionRuleError(LeadflowError):
    """Raised when a rule definition or reorder request is inconsistent."""

    def __init__(self, detail: str = "Invalid transition rule"):
        super().__init__(detail)


class InvalidTemperatureStateError(LeadflowError):
    """Raised when a lead change conflicts with its current temperature.

    Sub-statuses only make sense for ``quente`` leads, so changing the
    sub-status of any other lead is rejected.
    """

    def __init__(self, detail: str = "Operation not allowed for lead temperature"):
        super().__init__(detail)


class RuleSetUnavailableError(LeadflowError):
    """Raised when the transition rule set cannot be read.

    The engine converts this into an unsuccessful run result instead of
    letting it reach the transport layer.
    """

    def __init__(self, detail: str = "Transition rules could not be loaded"):
        super().__init__(detail)
