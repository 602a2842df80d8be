"""Build manifest persistence: per-document upsert, lookup, and stale-record pruning"""

from datetime import datetime

from sqlmodel import Session, select

from mdfolio.crud.models import BuildRecord


def get_by_path(session: Session, path: str) -> BuildRecord | None:
    """Return the BuildRecord for a source path, or None if never built."""
    return session.exec(select(BuildRecord).where(BuildRecord.path == path)).one_or_none()


def get_all_records(session: Session) -> list[BuildRecord]:
    return list(session.exec(select(BuildRecord).order_by(BuildRecord.path)).all())


def record_build(
    session: Session,
    data: dict,
    built_at: datetime | None = None,
    output_exists: bool = True,
    ) -> tuple[BuildRecord, str]:
    """Upsert a build record.

    Returns (record, status) where status is 'created', 'updated', or 'unchanged'.
    A record is unchanged when the rendered hash and output path match and the
    output file still exists. Flushes but does not commit; caller controls the transaction.
    """
    record = get_by_path(session, data['path'])

    if record:
        if record.hash == data['hash'] and record.output == data['output'] and output_exists:
            return record, 'unchanged'
        record.slug = data['slug']
        record.permalink = data['permalink']
        record.layout = data.get('layout')
        record.output = data['output']
        record.hash = data['hash']
        record.built_at = built_at or datetime.now()
        session.add(record)
        session.flush()
        return record, 'updated'

    record = BuildRecord(
        path=data['path'],
        slug=data['slug'],
        permalink=data['permalink'],
        layout=data.get('layout'),
        output=data['output'],
        hash=data['hash'],
        built_at=built_at or datetime.now(),
    )
    session.add(record)
    session.flush()
    return record, 'created'


def remove_missing(session: Session, present: set[str]) -> list[BuildRecord]:
    """Delete records whose source path is not in present; return the deleted records."""
    stale = [r for r in get_all_records(session) if r.path not in present]
    for r in stale:
        session.delete(r)
    session.flush()
    return stale
