import logging
from typing import NamedTuple

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, col

from app.data_access.models import Counter, utcnow


logger = logging.getLogger(__name__)

_UPSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class SequenceValue(NamedTuple):
    number: int
    prefix: str
    padding: int


class SequenceService:
    """Atomic numeric sequences keyed by name, used to mint human-readable IDs.

    Each call is one ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING``
    statement, so concurrent callers never receive the same number and no
    application-level lock is involved. When called inside a unit of work the
    increment commits or rolls back with it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _increment(self, key: str, prefix: str, padding: int) -> SequenceValue:
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Atomic sequences are not supported on '{dialect}'.")

        now = utcnow()
        statement = insert(Counter).values(
            key=key,
            prefix=prefix,
            padding=padding,
            next_number=1,
            created_at=now,
            updated_at=now,
        )
        # prefix/padding are only set on first insert
        statement = statement.on_conflict_do_update(
            index_elements=["key"],
            set_={"next_number": col(Counter.next_number) + 1, "updated_at": now},
        ).returning(col(Counter.next_number), col(Counter.prefix), col(Counter.padding))

        row = self.session.execute(statement).one()
        return SequenceValue(number=row[0], prefix=row[1], padding=row[2])

    def next_sequence(self, key: str, prefix: str = "U", padding: int = 5) -> int:
        """Returns the next integer for ``key``; the first call yields 1."""
        return self._increment(key, prefix, padding).number

    def next_custom_id(self, key: str, prefix: str = "U", padding: int = 5) -> str:
        """Mints a formatted ID such as 'A00001' from the sequence ``key``."""
        value = self._increment(key, prefix, padding)
        custom_id = f"{value.prefix}{str(value.number).zfill(value.padding)}"
        logger.debug(f"Issued {custom_id} from sequence '{key}'.")
        return custom_id
