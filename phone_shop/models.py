from sqlalchemy import Column, Float, ForeignKey, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# largest value the sqlite3 driver can bind to an INTEGER column
MAX_DB_INT = 2**63 - 1


class Phone(Base):
    __tablename__ = "phones"

    # ids are assigned by CatalogStore.create, not by the database
    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    brand = Column(String(50), nullable=False, index=True)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)


class CartLine(Base):
    """A reservation held by the cart.

    The phone's stock has already been decremented by ``quantity`` when the
    line exists. The surrogate ``id`` keeps lines in the order they were added.
    """

    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    phone_id = Column(Integer, ForeignKey("phones.id"), nullable=False, unique=True, index=True)
    quantity = Column(Integer, nullable=False)
