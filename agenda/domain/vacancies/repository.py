"""Vacancy repository - capacity templates and closed slots"""

from typing import NamedTuple, Optional

from sqlalchemy.orm import Session

from ...models import City, OsType, Period, Subject, VacancyClosedSlot, VacancyTemplate


class GridKey(NamedTuple):
    """Resolved ids of one grid cell"""

    city_id: int
    os_type_id: int
    period_id: int
    subject_id: int


class VacancyRepository:
    """Repository for vacancy grid database operations"""

    # ------------------------------------------------------------------
    # Catalog lookups by name
    # ------------------------------------------------------------------

    @staticmethod
    def get_city(db: Session, name: str, active_only: bool = False) -> Optional[City]:
        query = db.query(City).filter(City.name == name)
        if active_only:
            query = query.filter(City.is_active == 1)
        return query.first()

    @staticmethod
    def get_os_type(db: Session, code: str, active_only: bool = False) -> Optional[OsType]:
        query = db.query(OsType).filter(OsType.code == code)
        if active_only:
            query = query.filter(OsType.is_active == 1)
        return query.first()

    @staticmethod
    def get_period(db: Session, code: str) -> Optional[Period]:
        return db.query(Period).filter(Period.code == code).first()

    @staticmethod
    def get_subject(db: Session, name: str, active_only: bool = False) -> Optional[Subject]:
        query = db.query(Subject).filter(Subject.name == name)
        if active_only:
            query = query.filter(Subject.is_active == 1)
        return query.first()

    @staticmethod
    def resolve_key(
        db: Session, cidade: str, tipo: str, periodo: str, assunto: str
    ) -> Optional[GridKey]:
        """Ids for a (city, type, period, subject) name tuple, None if any is unknown"""
        row = (
            db.query(City.id, OsType.id, Period.id, Subject.id)
            .filter(
                City.name == cidade,
                OsType.code == tipo,
                Period.code == periodo,
                Subject.name == assunto,
            )
            .first()
        )
        return GridKey(*row) if row else None

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @staticmethod
    def _template_query(db: Session, *columns):
        return (
            db.query(*columns)
            .select_from(VacancyTemplate)
            .join(City, City.id == VacancyTemplate.city_id)
            .join(OsType, OsType.id == VacancyTemplate.os_type_id)
            .join(Period, Period.id == VacancyTemplate.period_id)
            .join(Subject, Subject.id == VacancyTemplate.subject_id)
        )

    @staticmethod
    def get_capacity(db: Session, cidade: str, tipo: str, periodo: str, assunto: str) -> int:
        """Template capacity of one cell by names, 0 when there is no template"""
        row = (
            VacancyRepository._template_query(db, VacancyTemplate.capacity)
            .filter(
                City.name == cidade,
                OsType.code == tipo,
                Period.code == periodo,
                Subject.name == assunto,
            )
            .first()
        )
        return int(row[0] or 0) if row else 0

    @staticmethod
    def get_city_templates(db: Session, cidade: str) -> list[tuple[str, str, str, int]]:
        """(tipo, periodo, assunto, capacidade) for a city, active subjects only"""
        return (
            VacancyRepository._template_query(
                db, OsType.code, Period.code, Subject.name, VacancyTemplate.capacity
            )
            .filter(City.name == cidade, Subject.is_active == 1)
            .all()
        )

    @staticmethod
    def get_city_type_templates(db: Session, cidade: str, tipo: str) -> list[tuple[str, str, int]]:
        """(periodo, assunto, capacidade) for a city and OS type, active subjects only"""
        return (
            VacancyRepository._template_query(
                db, Period.code, Subject.name, VacancyTemplate.capacity
            )
            .filter(City.name == cidade, OsType.code == tipo, Subject.is_active == 1)
            .all()
        )

    @staticmethod
    def get_period_templates(
        db: Session, cidade: str, tipo: str, periodo: str
    ) -> list[tuple[str, int]]:
        """(assunto, capacity) of one city/type/period, active city and type, by subject name"""
        return (
            VacancyRepository._template_query(db, Subject.name, VacancyTemplate.capacity)
            .filter(
                City.name == cidade,
                OsType.code == tipo,
                Period.code == periodo,
                City.is_active == 1,
                OsType.is_active == 1,
            )
            .order_by(Subject.name)
            .all()
        )

    @staticmethod
    def get_active_templates(db: Session) -> list[tuple[str, str, str, str, int]]:
        """(cidade, tipo, periodo, assunto, capacidade) across active cities/types/subjects"""
        return (
            VacancyRepository._template_query(
                db, City.name, OsType.code, Period.code, Subject.name, VacancyTemplate.capacity
            )
            .filter(City.is_active == 1, OsType.is_active == 1, Subject.is_active == 1)
            .all()
        )

    @staticmethod
    def get_capacities_by_subject(
        db: Session, city_id: int, os_type_id: int, period_id: int
    ) -> dict[str, int]:
        rows = (
            db.query(Subject.name, VacancyTemplate.capacity)
            .join(Subject, Subject.id == VacancyTemplate.subject_id)
            .filter(
                VacancyTemplate.city_id == city_id,
                VacancyTemplate.os_type_id == os_type_id,
                VacancyTemplate.period_id == period_id,
            )
            .all()
        )
        return {name: int(cap or 0) for name, cap in rows}

    @staticmethod
    def get_template(db: Session, key: GridKey) -> Optional[VacancyTemplate]:
        return (
            db.query(VacancyTemplate)
            .filter(
                VacancyTemplate.city_id == key.city_id,
                VacancyTemplate.os_type_id == key.os_type_id,
                VacancyTemplate.period_id == key.period_id,
                VacancyTemplate.subject_id == key.subject_id,
            )
            .first()
        )

    @staticmethod
    def upsert_capacity(db: Session, key: GridKey, capacity: int) -> VacancyTemplate:
        """Insert or update one cell; caller commits"""
        template = VacancyRepository.get_template(db, key)
        if template is None:
            template = VacancyTemplate(
                city_id=key.city_id,
                os_type_id=key.os_type_id,
                period_id=key.period_id,
                subject_id=key.subject_id,
                capacity=capacity,
            )
            db.add(template)
        else:
            template.capacity = capacity
        db.flush()
        return template

    # ------------------------------------------------------------------
    # Closed slots
    # ------------------------------------------------------------------

    @staticmethod
    def _closed_query(db: Session, *columns):
        return (
            db.query(*columns)
            .select_from(VacancyClosedSlot)
            .join(City, City.id == VacancyClosedSlot.city_id)
            .join(OsType, OsType.id == VacancyClosedSlot.os_type_id)
            .join(Period, Period.id == VacancyClosedSlot.period_id)
            .join(Subject, Subject.id == VacancyClosedSlot.subject_id)
        )

    @staticmethod
    def get_closed_indexes(
        db: Session, cidade: str, tipo: str, periodo: str, assunto: str, day: str
    ) -> list[int]:
        rows = (
            VacancyRepository._closed_query(db, VacancyClosedSlot.slot_index)
            .filter(
                City.name == cidade,
                OsType.code == tipo,
                Period.code == periodo,
                Subject.name == assunto,
                VacancyClosedSlot.day == day,
            )
            .order_by(VacancyClosedSlot.slot_index.asc())
            .all()
        )
        return [int(r[0]) for r in rows]

    @staticmethod
    def get_closed_for_day(db: Session, cidade: str, tipo: str, day: str) -> list[tuple[str, str, int]]:
        """(periodo, assunto, slot_index) closed for a city/type on a day"""
        return (
            VacancyRepository._closed_query(
                db, Period.code, Subject.name, VacancyClosedSlot.slot_index
            )
            .filter(City.name == cidade, OsType.code == tipo, VacancyClosedSlot.day == day)
            .order_by(Period.code, Subject.name, VacancyClosedSlot.slot_index)
            .all()
        )

    @staticmethod
    def _closed_slot_filter(db: Session, key: GridKey, day: str, slot_index: int):
        return db.query(VacancyClosedSlot).filter(
            VacancyClosedSlot.city_id == key.city_id,
            VacancyClosedSlot.os_type_id == key.os_type_id,
            VacancyClosedSlot.period_id == key.period_id,
            VacancyClosedSlot.subject_id == key.subject_id,
            VacancyClosedSlot.day == day,
            VacancyClosedSlot.slot_index == slot_index,
        )

    @staticmethod
    def close_slot(
        db: Session, key: GridKey, day: str, slot_index: int, user_id: Optional[int]
    ) -> bool:
        """Insert-or-ignore a closed slot. Returns True if a row was created"""
        if VacancyRepository._closed_slot_filter(db, key, day, slot_index).first():
            return False
        db.add(
            VacancyClosedSlot(
                city_id=key.city_id,
                os_type_id=key.os_type_id,
                period_id=key.period_id,
                subject_id=key.subject_id,
                day=day,
                slot_index=slot_index,
                closed_by_user_id=user_id,
            )
        )
        db.commit()
        return True

    @staticmethod
    def open_slot(db: Session, key: GridKey, day: str, slot_index: int) -> int:
        """Delete a closed slot. Returns the number of rows removed"""
        changes = VacancyRepository._closed_slot_filter(db, key, day, slot_index).delete(
            synchronize_session=False
        )
        db.commit()
        return changes
