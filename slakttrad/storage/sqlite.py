"""Relational store for users, trees, people and relations.

This module defines the database schema and the owner-scoped operations the
REST layer calls. Every tree-scoped method takes the id of the requesting
user and verifies that the tree belongs to that user before reading or
writing; a tree owned by someone else is reported exactly like a missing one.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    event,
    or_,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from slakttrad.errors import ConflictError, InvalidInputError, NotFoundError
from slakttrad.relation_types import relation_label
from slakttrad.schemas import (
    PersonCreate,
    PersonUpdate,
    RelationCreate,
    first_error_message,
    generated_place_label,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class User(Base):
    """Registered account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    display_name = Column(String)
    created_at = Column(String, default=_now)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "display_name": self.display_name}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Tree(Base):
    """Named family tree owned by one user."""

    __tablename__ = "trees"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(String, default=_now)
    updated_at = Column(String, default=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Tree(id={self.id}, name='{self.name}')>"


class Person(Base):
    """Person entity within a tree."""

    __tablename__ = "people"

    id = Column(Integer, primary_key=True)
    tree_id = Column(Integer, ForeignKey("trees.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    gender = Column(String)  # man, kvinna
    birth_year = Column(Integer)
    death_year = Column(Integer)
    # Location triple: all three set or all null
    place_label = Column(String)
    lat = Column(Float)
    lng = Column(Float)
    created_at = Column(String, default=_now)
    updated_at = Column(String, default=_now)

    def fields(self) -> dict[str, Any]:
        """Get the client-editable fields."""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "gender": self.gender,
            "birth_year": self.birth_year,
            "death_year": self.death_year,
            "place_label": self.place_label,
            "lat": self.lat,
            "lng": self.lng,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tree_id": self.tree_id,
            **self.fields(),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, name='{self.first_name} {self.last_name}')>"


class Relation(Base):
    """Relation between two people of the same tree."""

    __tablename__ = "relations"
    __table_args__ = (
        UniqueConstraint(
            "tree_id", "from_person_id", "to_person_id", "relation_type", name="uq_relation"
        ),
    )

    id = Column(Integer, primary_key=True)
    tree_id = Column(Integer, ForeignKey("trees.id", ondelete="CASCADE"), nullable=False, index=True)
    from_person_id = Column(Integer, ForeignKey("people.id", ondelete="CASCADE"), nullable=False)
    to_person_id = Column(Integer, ForeignKey("people.id", ondelete="CASCADE"), nullable=False)
    relation_type = Column(String, nullable=False)  # catalog key
    created_at = Column(String, default=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tree_id": self.tree_id,
            "from_person_id": self.from_person_id,
            "to_person_id": self.to_person_id,
            "relation_type": self.relation_type,
            "relation_label": relation_label(self.relation_type),
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return (
            f"<Relation(id={self.id}, "
            f"type='{self.relation_type}', "
            f"from={self.from_person_id}, "
            f"to={self.to_person_id})>"
        )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class FamilyTreeDatabase:
    """Database manager for users and their family trees."""

    def __init__(self, database_url: str = "sqlite:///./slakttrad.db"):
        """Initialize the database and create missing tables.

        Args:
            database_url: SQLAlchemy URL (an in-memory SQLite URL shares one connection)
        """
        self.database_url = database_url
        engine_kwargs: dict[str, Any] = {}
        is_sqlite = database_url.startswith("sqlite")
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.Session()

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        with self.get_session() as session:
            return session.execute(text("select 1")).scalar() == 1

    # Users

    def create_user(
        self, email: str, password_hash: str, display_name: str | None = None
    ) -> User:
        """Add a user account.

        Raises:
            ConflictError: If the email is already registered
        """
        with self.get_session() as session:
            if session.scalar(select(User.id).where(User.email == email)) is not None:
                raise ConflictError("Kontot finns redan.")

            user = User(email=email, password_hash=password_hash, display_name=display_name)
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise ConflictError("Kontot finns redan.") from None
            return user

    def get_user(self, user_id: int) -> User | None:
        with self.get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        with self.get_session() as session:
            return session.scalar(select(User).where(User.email == email))

    # Trees

    def _owned_tree(self, session: Session, user_id: int, tree_id: int) -> Tree:
        """Get a tree owned by the user (the owner check).

        Raises:
            NotFoundError: If the tree does not exist or belongs to someone else
        """
        tree = session.scalar(select(Tree).where(Tree.id == tree_id, Tree.user_id == user_id))
        if tree is None:
            raise NotFoundError("Trädet finns inte.")
        return tree

    def _touch(self, session: Session, tree_id: int) -> None:
        tree = session.get(Tree, tree_id)
        if tree is not None:
            tree.updated_at = _now()
            session.commit()

    def list_trees(self, user_id: int) -> list[Tree]:
        """Get the user's trees, newest first."""
        with self.get_session() as session:
            query = (
                select(Tree)
                .where(Tree.user_id == user_id)
                .order_by(Tree.created_at.desc(), Tree.id.desc())
            )
            return list(session.scalars(query))

    def create_tree(self, user_id: int, name: str) -> Tree:
        with self.get_session() as session:
            tree = Tree(user_id=user_id, name=name)
            session.add(tree)
            session.commit()
            return tree

    def get_tree(self, user_id: int, tree_id: int) -> Tree:
        with self.get_session() as session:
            return self._owned_tree(session, user_id, tree_id)

    def rename_tree(self, user_id: int, tree_id: int, name: str) -> Tree:
        with self.get_session() as session:
            tree = self._owned_tree(session, user_id, tree_id)
            tree.name = name
            tree.updated_at = _now()
            session.commit()
            return tree

    def delete_tree(self, user_id: int, tree_id: int) -> None:
        """Delete a tree together with all its people and relations."""
        with self.get_session() as session:
            tree = self._owned_tree(session, user_id, tree_id)
            session.query(Relation).filter(Relation.tree_id == tree_id).delete()
            session.query(Person).filter(Person.tree_id == tree_id).delete()
            session.delete(tree)
            session.commit()

    # People

    def list_people(self, user_id: int, tree_id: int) -> list[Person]:
        """Get the people of a tree in creation order."""
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            query = select(Person).where(Person.tree_id == tree_id).order_by(Person.id)
            return list(session.scalars(query))

    def _tree_person(self, session: Session, tree_id: int, person_id: int) -> Person:
        person = session.scalar(
            select(Person).where(Person.id == person_id, Person.tree_id == tree_id)
        )
        if person is None:
            raise NotFoundError("Personen finns inte.")
        return person

    def get_person(self, user_id: int, tree_id: int, person_id: int) -> Person:
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            return self._tree_person(session, tree_id, person_id)

    def create_person(self, user_id: int, tree_id: int, data: PersonCreate) -> Person:
        """Add a person to a tree.

        Args:
            user_id: Requesting user
            tree_id: Tree to add the person to
            data: Validated person record

        Returns:
            Created Person object
        """
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            person = Person(tree_id=tree_id, **data.model_dump())
            session.add(person)
            session.commit()
            self._touch(session, tree_id)
            return person

    def update_person(
        self, user_id: int, tree_id: int, person_id: int, changes: PersonUpdate
    ) -> Person:
        """Apply a partial update and re-validate the merged record.

        Raises:
            InvalidInputError: If the merged record is not a valid person
        """
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            person = self._tree_person(session, tree_id, person_id)

            sent = changes.changes()
            merged = {**person.fields(), **sent}
            if "place_label" not in sent and ("lat" in sent or "lng" in sent):
                if merged["lat"] is None and merged["lng"] is None:
                    merged["place_label"] = None
                elif person.lat is not None and person.place_label == generated_place_label(
                    person.lat, person.lng
                ):
                    merged["place_label"] = None
            try:
                record = PersonCreate.model_validate(merged)
            except ValidationError as e:
                raise InvalidInputError(first_error_message(e)) from e

            for key, value in record.model_dump().items():
                setattr(person, key, value)
            person.updated_at = _now()
            session.commit()
            self._touch(session, tree_id)
            return person

    def delete_person(self, user_id: int, tree_id: int, person_id: int) -> None:
        """Delete a person and every relation that references it."""
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            person = self._tree_person(session, tree_id, person_id)
            session.query(Relation).filter(
                or_(Relation.from_person_id == person_id, Relation.to_person_id == person_id)
            ).delete(synchronize_session=False)
            session.delete(person)
            session.commit()
            self._touch(session, tree_id)

    # Relations

    def list_relations(self, user_id: int, tree_id: int) -> list[Relation]:
        """Get the relations of a tree in creation order."""
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            query = select(Relation).where(Relation.tree_id == tree_id).order_by(Relation.id)
            return list(session.scalars(query))

    def get_relation(self, user_id: int, tree_id: int, relation_id: int) -> Relation:
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            relation = session.scalar(
                select(Relation).where(Relation.id == relation_id, Relation.tree_id == tree_id)
            )
            if relation is None:
                raise NotFoundError("Relationen finns inte.")
            return relation

    def create_relation(self, user_id: int, tree_id: int, data: RelationCreate) -> Relation:
        """Add a relation between two people of the same tree.

        Raises:
            InvalidInputError: If either person is not part of the tree
            ConflictError: If the same (from, to, type) relation already exists
        """
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)

            endpoints = set(
                session.scalars(
                    select(Person.id).where(
                        Person.tree_id == tree_id,
                        Person.id.in_([data.from_person_id, data.to_person_id]),
                    )
                )
            )
            if len(endpoints) != 2:
                raise InvalidInputError("Ogiltig person.")

            existing = session.scalar(
                select(Relation.id).where(
                    Relation.tree_id == tree_id,
                    Relation.from_person_id == data.from_person_id,
                    Relation.to_person_id == data.to_person_id,
                    Relation.relation_type == data.relation_type,
                )
            )
            if existing is not None:
                raise ConflictError("Relationen finns redan.")

            relation = Relation(
                tree_id=tree_id,
                from_person_id=data.from_person_id,
                to_person_id=data.to_person_id,
                relation_type=data.relation_type,
            )
            session.add(relation)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise ConflictError("Relationen finns redan.") from None
            self._touch(session, tree_id)
            return relation

    def delete_relation(self, user_id: int, tree_id: int, relation_id: int) -> None:
        with self.get_session() as session:
            self._owned_tree(session, user_id, tree_id)
            relation = session.scalar(
                select(Relation).where(Relation.id == relation_id, Relation.tree_id == tree_id)
            )
            if relation is None:
                raise NotFoundError("Relationen finns inte.")
            session.delete(relation)
            session.commit()
            self._touch(session, tree_id)

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics.

        Returns:
            Dictionary with row counts per table
        """
        with self.get_session() as session:
            return {
                "total_users": session.query(User).count(),
                "total_trees": session.query(Tree).count(),
                "total_people": session.query(Person).count(),
                "total_relations": session.query(Relation).count(),
            }
