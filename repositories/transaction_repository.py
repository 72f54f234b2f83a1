"""
Transaction Repository - data access layer for Transaction model.
Optimized with optional session parameter for transaction reuse.
Transactions are append-only: there is no update operation.
"""

from typing import Optional, List, Iterable
from sqlmodel import Session, select, func

from db_engine import get_engine
from models import Transaction


class TransactionRepository:
    """Repository for Transaction create/read/delete operations."""

    @staticmethod
    def add(transaction: Transaction, session: Optional[Session] = None) -> Transaction:
        """
        Append a transaction to the log.

        Args:
            transaction: Transaction to store; its sequence is assigned here
            session: Optional existing session for transaction reuse

        Returns:
            Stored Transaction object
        """
        def _add(sess: Session) -> Transaction:
            last = sess.exec(select(func.max(Transaction.sequence))).one()
            transaction.sequence = (last or 0) + 1
            sess.add(transaction)
            sess.commit()
            sess.refresh(transaction)
            return transaction

        if session is not None:
            return _add(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _add(session)

    @staticmethod
    def get_all(portfolio_id: Optional[str] = None, session: Optional[Session] = None) -> List[Transaction]:
        """
        Retrieve transactions in insertion order.

        Args:
            portfolio_id: Restrict to one portfolio when given
            session: Optional existing session for transaction reuse

        Returns:
            List of Transaction objects
        """
        def _get_all(sess: Session) -> List[Transaction]:
            statement = select(Transaction)
            if portfolio_id is not None:
                statement = statement.where(Transaction.portfolio_id == portfolio_id)
            statement = statement.order_by(Transaction.sequence)
            return list(sess.exec(statement).all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _get_all(session)

    @staticmethod
    def delete(transaction_id: str, session: Optional[Session] = None) -> bool:
        """
        Delete a transaction by its ID.

        Args:
            transaction_id: Transaction ID to delete
            session: Optional existing session for transaction reuse

        Returns:
            True if a transaction was removed, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                transaction = sess.get(Transaction, transaction_id)
                if transaction:
                    sess.delete(transaction)
                    sess.commit()
                    return True
                return False
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _delete(session)

    @staticmethod
    def replace_all(transactions: Iterable[Transaction], session: Optional[Session] = None) -> int:
        """
        Replace the whole log with the given transactions, keeping their order.

        Args:
            transactions: New transaction sequence
            session: Optional existing session for transaction reuse

        Returns:
            Number of transactions stored
        """
        def _replace(sess: Session) -> int:
            try:
                for existing in sess.exec(select(Transaction)).all():
                    sess.delete(existing)
                sess.flush()
                count = 0
                for count, tx in enumerate(transactions, 1):
                    tx.sequence = count
                    sess.add(tx)
                sess.commit()
                return count
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _replace(session)
        else:
            with Session(get_engine(), expire_on_commit=False) as session:
                return _replace(session)
