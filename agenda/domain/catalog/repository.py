"""Catalog repository - cities, technicians, subjects and OS types"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import OsType, Subject


class CatalogRepository:
    """Repository for name catalogs (City, Technician, Subject share the same shape)"""

    @staticmethod
    def list_entries(db: Session, model) -> list:
        """Active first, then by name"""
        return db.query(model).order_by(model.is_active.desc(), model.name).all()

    @staticmethod
    def get_by_id(db: Session, model, entry_id: int):
        return db.query(model).filter(model.id == entry_id).first()

    @staticmethod
    def get_by_name(db: Session, model, name: str, case_insensitive: bool = False):
        if case_insensitive:
            return db.query(model).filter(func.lower(model.name) == name.lower()).first()
        return db.query(model).filter(model.name == name).first()

    @staticmethod
    def create(db: Session, model, name: str):
        entry = model(name=name, is_active=1)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def update(db: Session, entry, **updates):
        for key, value in updates.items():
            setattr(entry, key, value)
        if isinstance(entry, Subject):
            entry.updated_at = datetime.now()
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def active_names(db: Session, model) -> list[str]:
        return [
            name
            for (name,) in db.query(model.name).filter(model.is_active == 1).order_by(model.name).all()
        ]

    @staticmethod
    def list_subjects(db: Session, only_active: bool = True) -> list[Subject]:
        query = db.query(Subject)
        if only_active:
            query = query.filter(Subject.is_active == 1)
        return query.order_by(Subject.name).all()

    @staticmethod
    def active_os_types(db: Session) -> list[str]:
        return [
            code
            for (code,) in db.query(OsType.code)
            .filter(OsType.is_active == 1)
            .order_by(OsType.code)
            .all()
        ]

    @staticmethod
    def name_taken(db: Session, model, name: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(model.id).filter(model.name == name)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return query.first() is not None
