# Overview: Service-layer operations for pass number sequences; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import GatePass, PassSequence
from ..numbering import (
    FormatError,
    date_key,
    format_pass_number,
    highest_pass_number,
    next_pass_number,
    parse_sequence,
    pass_prefix,
)
from ..time_utils import DateLike
from .concurrency import run_with_retry


class SequenceError(Exception):
    """Raised when pass number sequence operations fail."""
    pass


def last_issued_pass_number(pass_date: DateLike) -> str | None:
    """
    Highest pass number already stored for the day (integer comparison).

    Used to seed a day's counter the first time it is touched, so passes
    imported or created before the counter existed are never reissued.
    """
    prefix = pass_prefix(pass_date)
    rows = (
        db.session.query(GatePass.gatepass_no)
        .filter(GatePass.gatepass_no.like(f"{prefix}%"))
        .all()
    )
    return highest_pass_number((number for (number,) in rows), pass_date)


def _current_counter(key: str) -> int | None:
    return (
        db.session.query(PassSequence.next_number)
        .filter_by(day_key=key)
        .scalar()
    )


def allocate_pass_number(pass_date: DateLike) -> str:
    """
    Atomically allocate the next pass number for the day of pass_date.

    Increments the day's PassSequence row with a single UPDATE, so two
    concurrent requests can never read the same value. The first allocation
    of a day inserts the row, seeded from the highest number already stored.
    """
    try:
        key = date_key(pass_date)
    except FormatError as exc:
        raise SequenceError(str(exc)) from exc

    stmt = (
        update(PassSequence)
        .where(PassSequence.day_key == key)
        .values(next_number=PassSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    def _op() -> str:
        result = db.session.execute(stmt)
        if result.rowcount:
            db.session.flush()
            sequence = _current_counter(key) - 1
        else:
            prefix = pass_prefix(pass_date)
            seed = parse_sequence(last_issued_pass_number(pass_date), prefix) or 0
            sequence = seed + 1
            db.session.add(PassSequence(day_key=key, next_number=sequence + 1))
            try:
                db.session.flush()
            except IntegrityError:
                # Another request created the day's row first; take the increment path
                db.session.rollback()
                result = db.session.execute(stmt)
                if not result.rowcount:
                    raise
                db.session.flush()
                sequence = _current_counter(key) - 1

        number = format_pass_number(pass_date, sequence)
        current_app.logger.info("Allocated pass number %s", number)
        return number

    return run_with_retry(_op)


def preview_next_pass_number(pass_date: DateLike) -> str:
    """Number the next allocation for the day would return. Does not reserve it."""
    try:
        key = date_key(pass_date)
    except FormatError as exc:
        raise SequenceError(str(exc)) from exc

    counter = _current_counter(key)
    if counter is not None:
        return format_pass_number(pass_date, counter)
    return next_pass_number(pass_date, last_issued_pass_number(pass_date))
