class SantaError(Exception):
    """Base for failures shown to the organizer as a single message."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)


class ValidationError(SantaError):
    default_message = "Please fill in all fields"


class IncompleteParticipant(SantaError):
    default_message = "Please fill in all participant details"


class InvalidEmail(SantaError):
    default_message = "Please enter valid email addresses"


class DrawError(SantaError):
    default_message = "Could not generate valid assignments. Please try again."


class AssignmentExhausted(DrawError):
    pass


class DispatchFailure(SantaError):
    default_message = "Failed to send assignments. Please try again."


class InvalidTransition(RuntimeError):
    pass
