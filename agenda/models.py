from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(String(50), default="user", server_default="user")
    is_active = Column(Integer, default=1, server_default="1")
    created_at = Column(DateTime, server_default=func.now())

    permissions = relationship(
        "UserPermission", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    preferences = relationship(
        "UserPreference", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class UserPermission(Base):
    """Per-user override list; when present it replaces the role's permissions"""

    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "permission"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(100), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="permissions")


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role", "permission"),)

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String(50), nullable=False)
    permission = Column(String(100), nullable=False)


class UserPreference(Base):
    __tablename__ = "user_preferences"
    __table_args__ = (UniqueConstraint("user_id", "key"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    key = Column(String(100), nullable=False)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="preferences")


class ActivityLog(Base):
    """Legacy free-text activity log (login, logout, create, allocate...)"""

    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    user = Column(String(255), nullable=False)
    action = Column(String(100), nullable=False)
    details = Column(Text, nullable=True)
    ip_address = Column(String(100), nullable=True)
    timestamp = Column(DateTime, server_default=func.now())


class AuditLog(Base):
    """Before/after audit trail, values stored as JSON text"""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    username = Column(String(255), nullable=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(String(255), nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    ip_address = Column(String(100), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), index=True)


class ConfigEntry(Base):
    __tablename__ = "config"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    is_active = Column(Integer, default=1, server_default="1")
    created_at = Column(DateTime, server_default=func.now())


class Technician(Base):
    __tablename__ = "technicians"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    is_active = Column(Integer, default=1, server_default="1")
    created_at = Column(DateTime, server_default=func.now())


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    is_active = Column(Integer, default=1, server_default="1")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)


class OsType(Base):
    __tablename__ = "os_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False)  # FIBRA, RADIO
    is_active = Column(Integer, default=1, server_default="1")


class Period(Base):
    __tablename__ = "periods"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False)  # MANHÃ, TARDE


class VacancyTemplate(Base):
    """Capacity of one grid cell: city x OS type x period x subject"""

    __tablename__ = "vacancy_templates"
    __table_args__ = (UniqueConstraint("city_id", "os_type_id", "period_id", "subject_id"),)

    id = Column(Integer, primary_key=True, index=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    os_type_id = Column(Integer, ForeignKey("os_types.id"), nullable=False)
    period_id = Column(Integer, ForeignKey("periods.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    capacity = Column(Integer, nullable=False, default=0, server_default="0")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    city = relationship("City")
    os_type = relationship("OsType")
    period = relationship("Period")
    subject = relationship("Subject")


class VacancyClosedSlot(Base):
    """A single slot (by index) of a grid cell closed for one day"""

    __tablename__ = "vacancy_closed_slots"
    __table_args__ = (
        UniqueConstraint("city_id", "os_type_id", "period_id", "subject_id", "day", "slot_index"),
    )

    id = Column(Integer, primary_key=True, index=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=False)
    os_type_id = Column(Integer, ForeignKey("os_types.id"), nullable=False)
    period_id = Column(Integer, ForeignKey("periods.id"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False)
    day = Column(String(10), nullable=False)  # YYYY-MM-DD
    slot_index = Column(Integer, nullable=False)
    closed_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    closed_at = Column(DateTime, server_default=func.now())


class Agendamento(Base):
    """Service order (OS). Names are stored denormalised, as the dashboard sends them"""

    __tablename__ = "agendamentos"

    id = Column(Integer, primary_key=True, index=True)
    cliente = Column(String(255), nullable=False)
    cidade = Column(String(255), nullable=False, index=True)
    assunto = Column(String(255), nullable=False)
    data_hora = Column(DateTime, nullable=True, index=True)
    tecnico = Column(String(255), nullable=True)
    status = Column(String(50), default="Aberta", server_default="Aberta", index=True)
    observacoes = Column(Text, nullable=True)
    tipo_os = Column(String(50), nullable=True)
    periodo = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())
