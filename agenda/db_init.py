"""
Database bootstrap: create tables, apply soft migrations, seed defaults.

Seeds only run on empty tables, so an existing agenda.db keeps its data.
Everything that is configuration (cities, technicians, subjects, the vacancy
grid) lives in the database; constants.py is only the seed source.
"""

import logging
from typing import Callable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from . import constants
from .database import Base, SessionLocal, engine
from .models import (
    City,
    OsType,
    Period,
    RolePermission,
    Subject,
    Technician,
    User,
    VacancyTemplate,
)
from .security_utils import hash_password_bcrypt

logger = logging.getLogger(__name__)

# (table, column, DDL) added to databases created by older releases
SOFT_MIGRATIONS = [
    ("agendamentos", "tipo_os", "tipo_os TEXT"),
    ("agendamentos", "periodo", "periodo TEXT"),
    ("users", "is_active", "is_active INTEGER DEFAULT 1"),
    ("subjects", "updated_at", "updated_at TIMESTAMP"),
]


def ensure_column(bind: Engine, table: str, column: str, ddl: str) -> bool:
    """ALTER TABLE ... ADD COLUMN when the column is missing. Returns True if added"""
    columns = {c["name"] for c in inspect(bind).get_columns(table)}
    if column in columns:
        return False

    with bind.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {ddl}"))
    logger.info(f"[DB] Column added: {table}.{column}")
    return True


def _seed_if_empty(db: Session, model, seed_fn: Callable[[Session], None]) -> None:
    if db.query(model).count() == 0:
        seed_fn(db)
        db.commit()


def _seed_users(db: Session) -> None:
    for username, password, role in constants.DEFAULT_USERS:
        db.add(User(username=username, password=hash_password_bcrypt(password), role=role))
        logger.info(f"[DB] Default user created: {username} ({role})")


def _seed_role_permissions(db: Session) -> None:
    for role, perms in constants.ROLE_PERMISSIONS.items():
        for perm in perms:
            db.add(RolePermission(role=role, permission=perm))


def ensure_role_permission(db: Session, role: str, permission: str) -> None:
    exists = (
        db.query(RolePermission.id)
        .filter(RolePermission.role == role, RolePermission.permission == permission)
        .first()
    )
    if not exists:
        db.add(RolePermission(role=role, permission=permission))


def _seed_names(model, field: str, values: list[str]) -> Callable[[Session], None]:
    def seed(db: Session) -> None:
        for value in values:
            db.add(model(**{field: value}))

    return seed


def _seed_vacancy_templates(db: Session) -> None:
    city_ids = {c.name: c.id for c in db.query(City).all()}
    type_ids = {t.code: t.id for t in db.query(OsType).all()}
    period_ids = {p.code: p.id for p in db.query(Period).all()}
    subject_ids = {s.name: s.id for s in db.query(Subject).all()}

    created = 0
    for city_name, by_type in constants.ESTRUTURA_VAGAS.items():
        for type_code, by_period in by_type.items():
            for period_code, by_subject in by_period.items():
                for subject_name, capacity in by_subject.items():
                    ids = (
                        city_ids.get(city_name),
                        type_ids.get(type_code),
                        period_ids.get(period_code),
                        subject_ids.get(subject_name),
                    )
                    if not all(ids):
                        continue
                    city_id, type_id, period_id, subject_id = ids
                    db.add(
                        VacancyTemplate(
                            city_id=city_id,
                            os_type_id=type_id,
                            period_id=period_id,
                            subject_id=subject_id,
                            capacity=max(0, int(capacity or 0)),
                        )
                    )
                    created += 1
    logger.info(f"[DB] vacancy_templates seeded from defaults ({created} cells)")


def seed_defaults(db: Session) -> None:
    _seed_if_empty(db, User, _seed_users)
    _seed_if_empty(db, RolePermission, _seed_role_permissions)

    for role, perm in constants.ENSURED_ROLE_PERMISSIONS:
        ensure_role_permission(db, role, perm)
    db.commit()

    _seed_if_empty(db, City, _seed_names(City, "name", constants.CIDADES))
    _seed_if_empty(db, Technician, _seed_names(Technician, "name", constants.TECNICOS))
    _seed_if_empty(db, Subject, _seed_names(Subject, "name", constants.ASSUNTOS))
    _seed_if_empty(db, OsType, _seed_names(OsType, "code", constants.TIPOS_OS))
    _seed_if_empty(db, Period, _seed_names(Period, "code", constants.PERIODOS))
    _seed_if_empty(db, VacancyTemplate, _seed_vacancy_templates)


def initialize_database(bind: Engine = engine, seed: bool = True) -> None:
    """Create/upgrade the schema and seed an empty database"""
    Base.metadata.create_all(bind=bind, checkfirst=True)

    for table, column, ddl in SOFT_MIGRATIONS:
        ensure_column(bind, table, column, ddl)

    if not seed:
        return

    db = SessionLocal(bind=bind)
    try:
        seed_defaults(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
