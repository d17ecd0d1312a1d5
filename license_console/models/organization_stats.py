"""Usage snapshot reported by the booking app, one row per organization."""
from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from license_console.database import Base


class OrganizationStats(Base):
    __tablename__ = 'organization_stats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey('organization.id', ondelete='CASCADE'), nullable=False, unique=True)

    total_users = Column(Integer, nullable=False, default=0)
    active_users = Column(Integer, nullable=False, default=0)
    last_user_login = Column(DateTime, nullable=True)
    total_facilities = Column(Integer, nullable=False, default=0)
    total_categories = Column(Integer, nullable=False, default=0)
    total_bookings = Column(Integer, nullable=False, default=0)
    bookings_this_month = Column(Integer, nullable=False, default=0)
    pending_bookings = Column(Integer, nullable=False, default=0)
    total_roles = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime, nullable=False)

    organization = relationship('Organization', back_populates='stats')

    # Counter fields accepted from the booking app payload (camelCase -> column)
    COUNTER_FIELDS = {
        'totalUsers': 'total_users',
        'activeUsers': 'active_users',
        'totalFacilities': 'total_facilities',
        'totalCategories': 'total_categories',
        'totalBookings': 'total_bookings',
        'bookingsThisMonth': 'bookings_this_month',
        'pendingBookings': 'pending_bookings',
        'totalRoles': 'total_roles',
    }

    def __repr__(self):
        return f'<OrganizationStats organization_id={self.organization_id} users={self.total_users}>'

    def to_dict(self, include_organization=False):
        data = {
            'id': self.id,
            'organizationId': self.organization_id,
            'lastUserLogin': self.last_user_login.isoformat() if self.last_user_login else None,
            'lastUpdated': self.last_updated.isoformat() if self.last_updated else None,
        }
        for key, column in self.COUNTER_FIELDS.items():
            data[key] = getattr(self, column)
        if include_organization and self.organization is not None:
            data['organization'] = {
                'name': self.organization.name,
                'slug': self.organization.slug,
                'licenseType': self.organization.license_type,
                'isActive': self.organization.is_active,
            }
        return data
