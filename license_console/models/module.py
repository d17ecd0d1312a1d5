"""
Module and OrganizationModule models.

A module is an add-on capability of the booking platform (reporting,
payments, ...). Standard modules are always included and cannot be
switched off for an organization.
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from license_console.database import Base


class Module(Base):
    """Add-on capability with an optional monthly price (None means free)."""

    __tablename__ = 'module'

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(50), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_standard = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    price = Column(Numeric(12, 2), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    organizations = relationship('OrganizationModule', back_populates='module')

    def __repr__(self):
        return f'<Module id={self.id} key={self.key} price={self.price}>'

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'name': self.name,
            'description': self.description,
            'isStandard': self.is_standard,
            'isActive': self.is_active,
            'price': float(self.price) if self.price is not None else None,
        }


class OrganizationModule(Base):
    """
    Whether a module is switched on for an organization.

    Relationship: Many-to-One with Organization and Module; one row per pair.
    """
    __tablename__ = 'organization_module'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey('organization.id', ondelete='CASCADE'), nullable=False)
    module_id = Column(Integer, ForeignKey('module.id', ondelete='CASCADE'), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    activated_at = Column(DateTime, nullable=True)

    organization = relationship('Organization', back_populates='modules')
    module = relationship('Module', back_populates='organizations')

    __table_args__ = (
        UniqueConstraint('organization_id', 'module_id', name='uq_organization_module'),
    )

    def __repr__(self):
        return f'<OrganizationModule org={self.organization_id} module={self.module_id} active={self.is_active}>'

    def to_dict(self):
        return {
            'id': self.id,
            'organizationId': self.organization_id,
            'moduleId': self.module_id,
            'isActive': self.is_active,
            'activatedAt': self.activated_at.isoformat() if self.activated_at else None,
            'module': self.module.to_dict() if self.module else None,
        }
