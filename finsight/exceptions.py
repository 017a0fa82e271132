"""Domain exceptions for FinSight"""


class FinsightError(Exception):
    """Base exception for all FinSight domain errors"""
    pass


class UnknownUserError(FinsightError):
    """User does not exist in the data source"""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class UnknownAccountError(FinsightError):
    """Account does not exist in the data source"""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class WrongAccountTypeError(FinsightError):
    """Operation requested on an account of the wrong type"""

    def __init__(self, account_id: str, account_type: str, expected: str):
        self.account_id = account_id
        self.account_type = account_type
        self.expected = expected
        super().__init__(
            f"Account {account_id} is of type '{account_type}', expected {expected}"
        )


class UnknownOfferError(FinsightError):
    """Offer id is not in the partner offer catalog"""

    def __init__(self, offer_id: str):
        self.offer_id = offer_id
        super().__init__(f"Offer {offer_id} not found")
