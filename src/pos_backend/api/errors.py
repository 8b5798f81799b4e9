"""
pos_backend.api.errors

Mapping from typed core failures to HTTP errors.
"""

from __future__ import annotations

from fastapi import HTTPException
from starlette import status

from pos_backend import errors

_STATUS_BY_ERROR: dict[type[errors.CoreError], int] = {
    errors.MissingCredential: status.HTTP_401_UNAUTHORIZED,
    errors.ExpiredCredential: status.HTTP_401_UNAUTHORIZED,
    errors.MalformedCredential: status.HTTP_401_UNAUTHORIZED,
    errors.InsufficientRole: status.HTTP_403_FORBIDDEN,
    errors.ItemNotFound: status.HTTP_404_NOT_FOUND,
    errors.OrderNotFound: status.HTTP_404_NOT_FOUND,
    errors.UserNotFound: status.HTTP_404_NOT_FOUND,
    errors.ItemUnavailable: status.HTTP_409_CONFLICT,
    errors.InsufficientStock: status.HTTP_409_CONFLICT,
    errors.UsernameTaken: status.HTTP_409_CONFLICT,
    errors.InvalidRestock: status.HTTP_400_BAD_REQUEST,
    errors.EmptyOrder: status.HTTP_400_BAD_REQUEST,
    errors.InvalidQuantity: status.HTTP_400_BAD_REQUEST,
    errors.InvalidTotals: status.HTTP_400_BAD_REQUEST,
    errors.InvalidSignup: status.HTTP_400_BAD_REQUEST,
    errors.InvalidLogin: status.HTTP_401_UNAUTHORIZED,
    errors.WrongPassword: status.HTTP_400_BAD_REQUEST,
    errors.PersistenceFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(error: errors.CoreError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return HTTPException(status_code=code, detail=error.as_dict(), headers=headers)
