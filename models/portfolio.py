"""
Portfolio model - the single portfolio every transaction belongs to.
"""

from sqlmodel import SQLModel

from config import get_settings


class Portfolio(SQLModel):
    """Portfolio identity and base currency. Not persisted."""
    id: str
    name: str
    base_currency: str

    @classmethod
    def default(cls) -> "Portfolio":
        settings = get_settings()
        return cls(
            id=settings.portfolio_id,
            name=settings.portfolio_name,
            base_currency=settings.base_currency
        )
