"""Bank account repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Query, Session

from course_checkout.models.bank_account import BankAccount
from course_checkout.models.order import Order
from course_checkout.schemas.bank_account import BankAccountCreate, BankAccountUpdate


class BankAccountRepository:
    """Repository for BankAccount model."""

    def __init__(self, db: Session):
        self.db = db

    def _ordered(self, query: Query[BankAccount]) -> Query[BankAccount]:
        return query.order_by(BankAccount.display_order.asc(), BankAccount.created_at.asc())

    def get_all(self, is_active: bool | None = None) -> list[BankAccount]:
        """Get all bank accounts in display order."""
        query = self.db.query(BankAccount)
        if is_active is not None:
            query = query.filter(BankAccount.is_active == is_active)
        return self._ordered(query).all()

    def get_active(self, currency: str | None = None) -> list[BankAccount]:
        """Active accounts shown at checkout, optionally for one currency."""
        query = self.db.query(BankAccount).filter(BankAccount.is_active.is_(True))
        if currency:
            query = query.filter(BankAccount.currency == currency)
        return self._ordered(query).all()

    def get_by_id(self, account_id: UUID) -> BankAccount | None:
        """Get a bank account by ID."""
        return self.db.query(BankAccount).filter(BankAccount.id == account_id).first()

    def create(self, data: BankAccountCreate) -> BankAccount:
        """Create a new bank account."""
        account = BankAccount(
            bank_name=data.bank_name,
            account_holder=data.account_holder,
            account_type=data.account_type,
            account_number=data.account_number,
            currency=data.currency.value,
            swift_code=data.swift_code,
            routing_number=data.routing_number,
            notes=data.notes,
            display_order=data.display_order,
            is_active=data.is_active,
        )
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def update(self, account_id: UUID, data: BankAccountUpdate) -> BankAccount | None:
        """Update a bank account."""
        account = self.get_by_id(account_id)
        if not account:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("currency"):
            update_data["currency"] = update_data["currency"].value

        for key, value in update_data.items():
            setattr(account, key, value)

        self.db.commit()
        self.db.refresh(account)
        return account

    def set_active(self, account_id: UUID, is_active: bool) -> BankAccount | None:
        """Deactivate or reactivate a bank account."""
        account = self.get_by_id(account_id)
        if not account:
            return None

        account.is_active = is_active  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(account)
        return account

    def reorder(self, account_ids: list[UUID]) -> list[BankAccount]:
        """Set ``display_order`` from the position of each id in the list.

        Raises:
            ValueError: If any id does not exist.
        """
        accounts = {
            account.id: account
            for account in self.db.query(BankAccount).filter(BankAccount.id.in_(account_ids))
        }
        missing = [str(account_id) for account_id in account_ids if account_id not in accounts]
        if missing:
            raise ValueError(f"Bank accounts not found: {', '.join(missing)}")

        for position, account_id in enumerate(account_ids):
            accounts[account_id].display_order = position  # type: ignore[assignment]
        self.db.commit()
        return self.get_all()

    def count_orders(self, account_id: UUID) -> int:
        """Count orders that chose this account."""
        return self.db.query(Order).filter(Order.bank_account_id == account_id).count()

    def delete(self, account_id: UUID) -> bool:
        """Delete an account that no order references."""
        account = self.get_by_id(account_id)
        if not account:
            return False
        orders = self.count_orders(account_id)
        if orders > 0:
            raise ValueError(
                f"Bank account is referenced by {orders} order(s); deactivate it instead"
            )

        self.db.delete(account)
        self.db.commit()
        return True
