"""
Domain exceptions raised by the service layer.

Routes translate these into HTTPException; services never import FastAPI.
"""


class NumberingError(Exception):
    """Base class for numbering-sequence failures."""


class SequenceNotFoundError(NumberingError):
    def __init__(self, sequence_code: str):
        self.sequence_code = sequence_code
        super().__init__(f"Numbering sequence '{sequence_code}' not found")


class SequenceInactiveError(NumberingError):
    def __init__(self, sequence_code: str):
        self.sequence_code = sequence_code
        super().__init__(f"Numbering sequence '{sequence_code}' is inactive")


class DuplicateSequenceError(NumberingError):
    def __init__(self, sequence_code: str):
        self.sequence_code = sequence_code
        super().__init__(f"Sequence code '{sequence_code}' already exists")


class InvalidTemplateError(NumberingError):
    def __init__(self, invalid_tokens: set[str]):
        self.invalid_tokens = sorted(invalid_tokens)
        super().__init__(f"Invalid template variables: {', '.join(self.invalid_tokens)}")


class MissingContextError(NumberingError):
    def __init__(self, missing_tokens: list[str]):
        self.missing_tokens = missing_tokens
        super().__init__(f"Missing values for template variables: {', '.join(missing_tokens)}")


class InvalidCounterError(NumberingError):
    def __init__(self, value: int):
        self.value = value
        super().__init__("Next number must be a positive integer")
