from sqlalchemy import Column, String, Numeric, CheckConstraint, Index

from models.base_model import BaseModel, Base


class Listing(BaseModel, Base):
    __tablename__ = "listings"

    title = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # validated >= 0 in schema
    image = Column(String(2048), nullable=True)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_listings_price_nonnegative"),
        Index("ix_listings_title", "title"),
    )
