"""Admin-editable override of a license type's monthly base price."""
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func
from license_console.database import Base


class LicenseTypePrice(Base):
    __tablename__ = 'license_type_price'

    id = Column(Integer, primary_key=True, autoincrement=True)
    license_type = Column(String(20), nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f'<LicenseTypePrice {self.license_type}={self.price}>'
