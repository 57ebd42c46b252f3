from fastapi import HTTPException


class NotFound(HTTPException):
    """Budget missing, caller not a member, or an unknown user."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class InvalidInput(HTTPException):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=400, detail=detail)


class InvalidMember(HTTPException):
    """An identifier does not resolve to a current member of the budget."""

    def __init__(self, detail: str = "Not a member of this budget"):
        super().__init__(status_code=400, detail=detail)
