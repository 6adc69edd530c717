# Overview: Display id allocation for orders (sequential counter or random+timestamp codes).

from __future__ import annotations

import secrets
import string
import time

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ValidationError
from ..extensions import db
from ..models import DisplayIdSequence, Order


SCHEME_SEQUENTIAL = "sequential"
SCHEME_RANDOM = "random"

ORDER_SEQUENCE_KEY = "ORDER"

_RANDOM_ALPHABET = string.ascii_uppercase + string.digits
_RANDOM_ATTEMPTS = 5


def next_sequence_number(sequence_key: str) -> int:
    """
    Atomically allocate the next number for a sequence.

    The counter is bumped with a single UPDATE, so two concurrent callers can
    never read the same value. Must run inside the caller's transaction.
    """
    if not sequence_key:
        raise ValidationError("sequence_key is required")

    stmt = (
        update(DisplayIdSequence)
        .where(DisplayIdSequence.sequence_key == sequence_key)
        .values(next_number=DisplayIdSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(DisplayIdSequence.next_number)
            .filter_by(sequence_key=sequence_key)
            .scalar()
        )
        return current - 1

    seq = DisplayIdSequence(sequence_key=sequence_key, next_number=2)
    try:
        with db.session.begin_nested():
            db.session.add(seq)
        return 1
    except IntegrityError:
        # Lost the race to create the row; it exists now
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise
        current = (
            db.session.query(DisplayIdSequence.next_number)
            .filter_by(sequence_key=sequence_key)
            .scalar()
        )
        return current - 1


def format_sequential(prefix: str, number: int, pad: int = 5) -> str:
    return f"{prefix}-{number:0{pad}d}"


def random_display_id() -> str:
    """XXXX-###### : 4 random letters/digits plus the last 6 digits of the ms clock."""
    head = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(4))
    tail = int(time.time() * 1000) % 1_000_000
    return f"{head}-{tail:06d}"


def _display_id_taken(display_id: str) -> bool:
    return db.session.query(Order.id).filter_by(display_id=display_id).first() is not None


def allocate_order_display_id() -> str:
    """
    Allocate a unique display id for a new order using the configured scheme.

    DISPLAY_ID_SCHEME:
    - "sequential": PREFIX-00001, backed by DisplayIdSequence
    - "random": XXXX-######, re-rolled on collision
    """
    scheme = current_app.config.get("DISPLAY_ID_SCHEME", SCHEME_SEQUENTIAL)

    if scheme == SCHEME_RANDOM:
        for _ in range(_RANDOM_ATTEMPTS):
            candidate = random_display_id()
            if not _display_id_taken(candidate):
                return candidate
        raise RuntimeError("Could not allocate a unique display id")

    if scheme != SCHEME_SEQUENTIAL:
        raise ValueError(f"Unknown DISPLAY_ID_SCHEME: {scheme}")

    number = next_sequence_number(ORDER_SEQUENCE_KEY)
    return format_sequential(
        current_app.config.get("DISPLAY_ID_PREFIX", "ORD"),
        number,
        pad=current_app.config.get("DISPLAY_ID_PAD", 5),
    )
