# File: shipwright/entity.py
"""
Shipwright - Runtime Entity Layer
==================================
The small runtime library generated entity modules import.

``Entity`` is the CRUD capability interface, generic over the id type, the
record model and the changeset model. ``SqlEntity`` implements it with
SQLAlchemy Core against the tables produced by generated migrations::

    class PostEntity(SqlEntity[Post, PostChangeset]):
        table_name = "posts"
        record_model = Post
        changeset_model = PostChangeset

    posts = PostEntity(create_engine("sqlite:///app.db"))
    post = posts.create({"title": "Hello"})

Every call runs in its own transaction. Changesets are validated with
Pydantic before anything touches the database.
"""

from __future__ import annotations

import json
import logging
import types
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel
from sqlalchemy import column, delete, func, insert, select, table, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.sql.expression import ColumnElement, TableClause

from shipwright.errors import NoRecordFoundError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.entity")

IdT = TypeVar("IdT")
RecordT = TypeVar("RecordT", bound=BaseModel)
ChangesetT = TypeVar("ChangesetT", bound=BaseModel)


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class Entity(ABC, Generic[IdT, RecordT, ChangesetT]):
    """CRUD operations over one table."""

    @abstractmethod
    def load_all(self) -> List[RecordT]:
        ...

    @abstractmethod
    def load(self, record_id: IdT) -> RecordT:
        """Raises ``NoRecordFoundError`` when no row has *record_id*."""

    @abstractmethod
    def create(self, changeset: Union[ChangesetT, Mapping[str, Any]]) -> RecordT:
        ...

    @abstractmethod
    def update(
        self, record_id: IdT, changeset: Union[ChangesetT, Mapping[str, Any]]
    ) -> RecordT:
        ...

    @abstractmethod
    def delete(self, record_id: IdT) -> RecordT:
        """Delete a row and return what it held."""

    def create_batch(
        self, changesets: Iterable[Union[ChangesetT, Mapping[str, Any]]]
    ) -> List[RecordT]:
        return [self.create(cs) for cs in changesets]

    def delete_batch(self, record_ids: Iterable[IdT]) -> List[RecordT]:
        return [self.delete(rid) for rid in record_ids]



# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------

RecordId = Union[int, str, uuid.UUID]

# ``id`` annotations SqlEntity can allocate values for.
ALLOCATABLE_ID_TYPES: Tuple[type, ...] = (int, uuid.UUID, str)


def decode_json_text(value: Any) -> Any:
    """
    Decode a JSON document sent as text, e.g. from a form post.

    Already-decoded values pass through. Used as a ``mode="before"``
    validator on the JSON fields of generated changesets.
    """
    if isinstance(value, str):
        return json.loads(value)
    return value


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _to_db_value(value: Any, as_json: bool = False) -> Any:
    """Convert a Python value into something the DB-API driver can bind."""
    if value is None:
        return None
    if as_json or isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if isinstance(value, (uuid.UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class SqlEntity(Entity[RecordId, RecordT, ChangesetT]):
    """
    ``Entity`` backed by a SQLAlchemy engine.

    Subclasses set ``table_name``, ``record_model`` and ``changeset_model``.
    Columns are taken from the record model's fields.

    New rows get their ``primary_key`` from the record model's annotation
    for it: ``int`` ids are the current maximum plus one, read in the
    inserting transaction; ``UUID`` and ``str`` ids are random UUIDs stored
    as text. Any other annotation is rejected with ``TypeError``.
    """

    table_name: ClassVar[str]
    record_model: ClassVar[Type[BaseModel]]
    changeset_model: ClassVar[Type[BaseModel]]
    primary_key: ClassVar[str] = "id"
    json_fields: ClassVar[FrozenSet[str]] = frozenset()

    def __init__(self, engine: Engine) -> None:
        self.engine: Engine = engine
        fields = self.record_model.model_fields
        if self.primary_key not in fields:
            raise TypeError(
                f"{self.record_model.__name__} has no '{self.primary_key}' field."
            )
        self.id_type: Any = _unwrap_optional(fields[self.primary_key].annotation)
        if self.id_type not in ALLOCATABLE_ID_TYPES:
            raise TypeError(
                f"Cannot allocate ids of type {self.id_type!r} for "
                f"'{self.table_name}.{self.primary_key}'; use int, UUID or str."
            )
        self.table: TableClause = table(
            self.table_name,
            *[column(name) for name in fields],
        )

    # -- Helpers ------------------------------------------------------------

    def _validate(self, changeset: Union[ChangesetT, Mapping[str, Any]]) -> BaseModel:
        if isinstance(changeset, self.changeset_model):
            return changeset
        if isinstance(changeset, BaseModel):
            changeset = changeset.model_dump(exclude_unset=True)
        return self.changeset_model.model_validate(changeset)

    def _row_values(self, changeset: BaseModel, exclude_unset: bool) -> Dict[str, Any]:
        data: Dict[str, Any] = changeset.model_dump(exclude_unset=exclude_unset)
        return {
            key: _to_db_value(value, as_json=key in self.json_fields)
            for key, value in data.items()
        }

    def _to_record(self, row: Mapping[str, Any]) -> RecordT:
        data: Dict[str, Any] = dict(row)
        for key in self.json_fields:
            if isinstance(data.get(key), str):
                data[key] = json.loads(data[key])
        return self.record_model.model_validate(data)  # type: ignore[return-value]

    def _match_id(self, record_id: Any) -> ColumnElement[bool]:
        """``WHERE`` clause for *record_id*; unparseable ids match no row."""
        key: Any
        if self.id_type is int:
            try:
                key = int(record_id)
            except (TypeError, ValueError):
                raise NoRecordFoundError(self.table_name, record_id) from None
        else:
            key = str(record_id)
        return self.table.c[self.primary_key] == key

    def _next_id(self, conn: Connection) -> Any:
        if self.id_type is int:
            pk = self.table.c[self.primary_key]
            current: Optional[int] = conn.execute(select(func.max(pk))).scalar()
            return (current or 0) + 1
        return str(uuid.uuid4())

    def _load(self, conn: Connection, record_id: Any) -> RecordT:
        row: Optional[Mapping[str, Any]] = (
            conn.execute(select(self.table).where(self._match_id(record_id)))
            .mappings()
            .first()
        )
        if row is None:
            raise NoRecordFoundError(self.table_name, record_id)
        return self._to_record(row)

    def _create(self, conn: Connection, changeset: Any) -> RecordT:
        values: Dict[str, Any] = self._row_values(
            self._validate(changeset), exclude_unset=False
        )
        record_id: Any = self._next_id(conn)
        values[self.primary_key] = record_id
        conn.execute(insert(self.table).values(**values))
        logger.debug("Inserted %s into '%s'.", record_id, self.table_name)
        return self._load(conn, record_id)

    def _delete(self, conn: Connection, record_id: Any) -> RecordT:
        record: RecordT = self._load(conn, record_id)
        conn.execute(delete(self.table).where(self._match_id(record_id)))
        logger.debug("Deleted %s from '%s'.", record_id, self.table_name)
        return record

    # -- Entity -------------------------------------------------------------

    def load_all(self) -> List[RecordT]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(self.table)).mappings().all()
        return [self._to_record(row) for row in rows]

    def load(self, record_id: RecordId) -> RecordT:
        with self.engine.connect() as conn:
            return self._load(conn, record_id)

    def create(self, changeset: Union[ChangesetT, Mapping[str, Any]]) -> RecordT:
        with self.engine.begin() as conn:
            return self._create(conn, changeset)

    def update(
        self, record_id: RecordId, changeset: Union[ChangesetT, Mapping[str, Any]]
    ) -> RecordT:
        values: Dict[str, Any] = self._row_values(
            self._validate(changeset), exclude_unset=True
        )
        values.pop(self.primary_key, None)
        with self.engine.begin() as conn:
            if values:
                result = conn.execute(
                    update(self.table).where(self._match_id(record_id)).values(**values)
                )
                if result.rowcount == 0:
                    raise NoRecordFoundError(self.table_name, record_id)
            return self._load(conn, record_id)

    def delete(self, record_id: RecordId) -> RecordT:
        with self.engine.begin() as conn:
            return self._delete(conn, record_id)

    def create_batch(
        self, changesets: Iterable[Union[ChangesetT, Mapping[str, Any]]]
    ) -> List[RecordT]:
        with self.engine.begin() as conn:
            return [self._create(conn, cs) for cs in changesets]

    def delete_batch(self, record_ids: Iterable[RecordId]) -> List[RecordT]:
        with self.engine.begin() as conn:
            return [self._delete(conn, rid) for rid in record_ids]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} table={self.table_name}>"


__all__: List[str] = [
    "ALLOCATABLE_ID_TYPES",
    "RecordId",
    "Entity",
    "SqlEntity",
    "decode_json_text",
]

logger.debug("shipwright.entity loaded — %d public symbols.", len(__all__))
