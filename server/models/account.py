"""Request parameter types for the account routes."""

from typing import Annotated
from fastapi import Path

from constants import ACCOUNT_ID_MAX_LENGTH, ACCOUNT_ID_MIN_LENGTH, ACCOUNT_ID_PATTERN

AccountId = Annotated[str, Path(
    min_length=ACCOUNT_ID_MIN_LENGTH,
    max_length=ACCOUNT_ID_MAX_LENGTH,
    pattern=ACCOUNT_ID_PATTERN,
    description="NEAR account id, e.g. alice.near",
)]

MethodName = Annotated[str, Path(
    min_length=1,
    max_length=256,
    description="Contract method name",
)]
