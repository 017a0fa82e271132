"""
Custom Exceptions for FinSight API
"""

from fastapi import HTTPException, status

from finsight.exceptions import (
    FinsightError,
    UnknownAccountError,
    UnknownOfferError,
    UnknownUserError,
    WrongAccountTypeError,
)


class UserNotFoundError(HTTPException):
    """User not found."""

    def __init__(self, user_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )


class AccountNotFoundError(HTTPException):
    """Account not found."""

    def __init__(self, account_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account {account_id} not found"
        )


class OfferNotFoundError(HTTPException):
    """Offer not in the catalog."""

    def __init__(self, offer_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Offer {offer_id} not found"
        )


class InvalidAccountTypeError(HTTPException):
    """Operation requested on the wrong kind of account."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


def to_http_error(exc: FinsightError) -> HTTPException:
    """Translate a domain error into its HTTP counterpart."""
    if isinstance(exc, UnknownUserError):
        return UserNotFoundError(exc.user_id)
    if isinstance(exc, UnknownAccountError):
        return AccountNotFoundError(exc.account_id)
    if isinstance(exc, UnknownOfferError):
        return OfferNotFoundError(exc.offer_id)
    if isinstance(exc, WrongAccountTypeError):
        return InvalidAccountTypeError(str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
