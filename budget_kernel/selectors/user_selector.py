"""
Module: budget_kernel.selectors.user_selector
Responsibility: Read access to users and their accounts.
Architecture position: Kernel > Selectors.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from budget_kernel.domain.dtos import AccountInfo, UserInfo
from budget_kernel.exceptions import AccountNotFoundError, UserNotFoundError
from budget_kernel.models.account import Account, AccountType
from budget_kernel.models.user import User
from budget_kernel.selectors.base import BaseSelector


class UserSelector(BaseSelector[User]):
    """Users, their accounts, and account balance sums."""

    def get_user(self, user_id: UUID) -> UserInfo:
        """
        Raises:
            UserNotFoundError: no user with that id.
        """
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return UserInfo.from_model(user)

    def get_account(self, account_id: UUID, user_id: UUID | None = None) -> AccountInfo:
        """
        Fetch an active account, optionally checking its owner.

        Raises:
            AccountNotFoundError: missing, inactive, or owned by another user.
        """
        account = self.session.get(Account, account_id)
        if (
            account is None
            or not account.is_active
            or (user_id is not None and account.user_id != user_id)
        ):
            raise AccountNotFoundError(
                str(account_id),
                str(user_id) if user_id is not None else None,
            )
        return AccountInfo.from_model(account)

    def find_default_account(self, user_id: UUID) -> AccountInfo | None:
        """
        The account salary and charges land on when none is given.

        The primary fixed-charges account wins; otherwise the first active
        checking account by creation order.
        """
        primary = self.session.scalars(
            select(Account)
            .where(
                Account.user_id == user_id,
                Account.is_active.is_(True),
                Account.is_primary_for_charges.is_(True),
            )
            .order_by(Account.created_at)
            .limit(1)
        ).first()
        if primary is not None:
            return AccountInfo.from_model(primary)

        checking = self.session.scalars(
            select(Account)
            .where(
                Account.user_id == user_id,
                Account.is_active.is_(True),
                Account.account_type == AccountType.CHECKING.value,
            )
            .order_by(Account.created_at, Account.name)
            .limit(1)
        ).first()
        return AccountInfo.from_model(checking) if checking is not None else None

    def balance_by_type(self, user_id: UUID, account_type: AccountType | str) -> Decimal:
        """Sum of the balances of the user's active accounts of one type."""
        type_value = AccountType(account_type).value
        total = self.session.scalar(
            select(func.coalesce(func.sum(Account.balance), 0)).where(
                Account.user_id == user_id,
                Account.is_active.is_(True),
                Account.account_type == type_value,
            )
        )
        return Decimal(str(total))
