from sqlalchemy import Column, ForeignKey, Index, Integer, Table, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Tenants(Base):
    __tablename__ = 'tenants'

    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    services = relationship('Services', back_populates='tenant')
    providers = relationship('Providers', back_populates='tenant')
    operating_hours = relationship('OperatingHours', back_populates='tenant')
    appointments = relationship('Appointments', back_populates='tenant')


class Services(Base):
    __tablename__ = 'services'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'name'),
    )

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False, server_default=text('60'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)

    tenant = relationship('Tenants', back_populates='services')
    appointments = relationship('Appointments', back_populates='service')


class Providers(Base):
    __tablename__ = 'providers'

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)

    tenant = relationship('Tenants', back_populates='providers')
    schedules = relationship('ProviderSchedules', back_populates='provider')
    appointments = relationship('Appointments', back_populates='provider')


t_provider_services = Table(
    'provider_services', metadata,
    Column('provider_id', ForeignKey('providers.id', ondelete='CASCADE'), nullable=False),
    Column('service_id', ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
    Column('is_active', Integer, nullable=False, server_default=text('1')),
    UniqueConstraint('provider_id', 'service_id')
)


class ProviderSchedules(Base):
    __tablename__ = 'provider_schedules'
    __table_args__ = (
        UniqueConstraint('provider_id', 'day_of_week'),
    )

    provider_id = Column(ForeignKey('providers.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)
    is_working = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)

    provider = relationship('Providers', back_populates='schedules')


class OperatingHours(Base):
    __tablename__ = 'operating_hours'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'day_name'),
    )

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    day_name = Column(Text, nullable=False)  # "monday"
    enabled = Column(Integer, nullable=False, server_default=text('1'))
    start_hour = Column(Integer, nullable=False, server_default=text('9'))
    end_hour = Column(Integer, nullable=False, server_default=text('17'))
    id = Column(Integer, primary_key=True)

    tenant = relationship('Tenants', back_populates='operating_hours')


class AppointmentDurations(Base):
    __tablename__ = 'appointment_durations'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'service_type'),
    )

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    service_type = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    id = Column(Integer, primary_key=True)


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        # One live booking per provider and start instant; the losing
        # concurrent insert gets an IntegrityError.
        Index(
            'uq_appointments_provider_slot',
            'provider_id', 'date', 'start_minute',
            unique=True,
            sqlite_where=text("status != 'Cancelled' AND deleted_at IS NULL AND provider_id IS NOT NULL"),
            postgresql_where=text("status != 'Cancelled' AND deleted_at IS NULL AND provider_id IS NOT NULL"),
        ),
        Index('ix_appointments_tenant_date', 'tenant_id', 'date'),
    )

    tenant_id = Column(ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    provider_id = Column(ForeignKey('providers.id', ondelete='SET NULL'))
    service_id = Column(ForeignKey('services.id', ondelete='SET NULL'))
    date = Column(Text, nullable=False)  # "YYYY-MM-DD"
    time = Column(Text, nullable=False)  # "HH:MM"
    start_minute = Column(Integer, nullable=False)
    service_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'Pending'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    duration_minutes = Column(Integer)
    patient_name = Column(Text)
    notes = Column(Text)
    deleted_at = Column(Text)

    tenant = relationship('Tenants', back_populates='appointments')
    provider = relationship('Providers', back_populates='appointments')
    service = relationship('Services', back_populates='appointments')
