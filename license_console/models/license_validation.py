"""
License validation log - one row per validation request from a booking app.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from license_console.database import Base


class LicenseValidation(Base):
    __tablename__ = 'license_validation'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey('organization.id', ondelete='CASCADE'), nullable=True)

    license_key = Column(String(64), nullable=False)
    org_slug = Column(String(80), nullable=False)
    valid = Column(Boolean, nullable=False)
    reason = Column(String(20), nullable=True)  # mismatch | inactive | suspended | expired

    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    organization = relationship('Organization', back_populates='validations')

    def __repr__(self):
        return f'<LicenseValidation org={self.organization_id} valid={self.valid} reason={self.reason}>'
