"""Репозитории для работы с БД."""

from .account_repo import (
    count_accounts_by_ip,
    count_referees,
    credit_balance,
    find_owner_ids,
    get_account_by_phone,
    get_account_by_ref_code,
    get_account_by_token_digest,
    identity_code_exists,
    raise_tier,
)
from .settlement_repo import create_order, get_order, mark_settled

__all__ = [
    "count_accounts_by_ip",
    "count_referees",
    "create_order",
    "credit_balance",
    "find_owner_ids",
    "get_account_by_phone",
    "get_account_by_ref_code",
    "get_account_by_token_digest",
    "get_order",
    "identity_code_exists",
    "mark_settled",
    "raise_tier",
]
