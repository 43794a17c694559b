# Overview: Transaction scope shared by every multi-row mutation.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


@contextmanager
def transaction():
    """
    Run a block as one atomic unit of work on the current session.

    Commits when the block exits cleanly. On any exception the session is
    rolled back before the exception propagates, so no partial request rows
    or stock movements are ever persisted.

    NOTE: No retry is attempted. A failed unit of work surfaces to the
    caller, who may resubmit.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise
