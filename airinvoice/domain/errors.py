"""Precondition failures surfaced to callers of the passenger workflow."""


class PassengerNotFoundError(LookupError):
    """Raised when an operation names a passenger id that is not on record."""

    def __init__(self, passenger_id: str) -> None:
        super().__init__(f"Passenger not found: {passenger_id}")
        self.passenger_id = passenger_id


class ParsePreconditionError(RuntimeError):
    """Raised when parsing is requested before a successful download."""

    def __init__(self, message: str = "No PDF available to parse. Please download the invoice first.") -> None:
        super().__init__(message)
