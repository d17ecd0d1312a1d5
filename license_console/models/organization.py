"""Organization model - each customer running the booking platform."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from license_console.database import Base


def _iso(value):
    return value.isoformat() if value else None


class Organization(Base):
    """
    Tenant record for a licensed customer.

    Organizations are created by an admin, mutated through status,
    license type and expiry updates, and never hard-deleted.
    """

    __tablename__ = 'organization'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(80), nullable=False, unique=True)  # URL-safe identifier

    # Contact
    contact_email = Column(String(255), nullable=False)
    contact_name = Column(String(200), nullable=True)
    contact_phone = Column(String(50), nullable=True)

    # License
    license_key = Column(String(64), nullable=False, unique=True)
    license_type = Column(String(20), nullable=False, default='inactive')
    is_active = Column(Boolean, nullable=False, default=True)
    is_suspended = Column(Boolean, nullable=False, default=False)
    suspend_reason = Column(Text, nullable=True)
    activated_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False)
    grace_ends_at = Column(DateTime, nullable=True)

    # Heartbeat / usage summary pushed by the booking app
    last_heartbeat = Column(DateTime, nullable=True)
    app_version = Column(String(50), nullable=True)
    app_url = Column(String(255), nullable=True)
    total_users = Column(Integer, nullable=False, default=0)
    total_bookings = Column(Integer, nullable=False, default=0)

    # Limits
    max_users = Column(Integer, nullable=True)
    max_resources = Column(Integer, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    modules = relationship('OrganizationModule', back_populates='organization', cascade='all, delete-orphan')
    invoices = relationship('Invoice', back_populates='organization')
    stats = relationship('OrganizationStats', back_populates='organization', uselist=False)
    validations = relationship('LicenseValidation', back_populates='organization')

    def __repr__(self):
        return f"<Organization(id={self.id}, slug='{self.slug}', license_type='{self.license_type}')>"

    @property
    def active_modules(self):
        """OrganizationModule rows currently switched on."""
        return [org_module for org_module in self.modules if org_module.is_active]

    def summary_dict(self):
        """Short form embedded in invoice payloads."""
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'contactEmail': self.contact_email,
            'contactName': self.contact_name,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'contactEmail': self.contact_email,
            'contactName': self.contact_name,
            'contactPhone': self.contact_phone,
            'licenseKey': self.license_key,
            'licenseType': self.license_type,
            'isActive': self.is_active,
            'isSuspended': self.is_suspended,
            'suspendReason': self.suspend_reason,
            'createdAt': _iso(self.created_at),
            'activatedAt': _iso(self.activated_at),
            'expiresAt': _iso(self.expires_at),
            'graceEndsAt': _iso(self.grace_ends_at),
            'lastHeartbeat': _iso(self.last_heartbeat),
            'appVersion': self.app_version,
            'appUrl': self.app_url,
            'totalUsers': self.total_users,
            'totalBookings': self.total_bookings,
            'maxUsers': self.max_users,
            'maxResources': self.max_resources,
            'notes': self.notes,
        }
