"""
Registration service: the admission commit protocol.

CONCURRENCY STRATEGY: Compare-and-commit per tier with cascading retry
=======================================================================

Problem:
  Two guests submit at the same moment and both see one VIP seat left.
  A naive "count, decide, insert" sequence seats both of them in VIP.
  Result: the tier is oversold.

Solution:
  The decision and the write are tied together through the seat ledger.

  1. Check name and email against existing registrants (cheap, no tier writes)
  2. Read the ledger (fresh snapshot) and run the downgrade resolver
  3. Claim the resolved tier with a guarded UPDATE keyed on the row version
     and `admitted < capacity`
  4. If the claim affects zero rows, a concurrent admission won the seat:
     roll back, re-read and resolve again. The new resolution cascades to
     the next tier with room, or ends in FullyBooked. Nothing waits or queues.
  5. Insert the registrant (requested + effective tier) and the relationship
     rows, then commit. Any failure rolls back everything, seat claim included.

  A lost race usually means someone else took a seat at or below the
  requested tier, so the loop runs at most cumulative_capacity(requested) + 1
  times. FullyBooked only ever comes from a fresh snapshot with no room.
  Version bumps from a reset or a capacity change also fail claims, so
  running out of attempts is reported as StorageUnavailable ("try again").

  The unique indexes on name and email catch duplicates that slip past step 1
  when the same person submits twice concurrently.
"""

import time
from datetime import datetime, timezone

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateIdentity, FullyBooked, StorageUnavailable
from app.core.logging import get_logger
from app.core.metrics import admission_latency, record_admission, record_seat_claim_retry, record_tier_occupancy
from app.models.registrant import Registrant
from app.models.relationship import Relationship
from app.schemas.registration import RegistrationCreate
from app.services import seat_ledger
from app.services.availability import TierAvailability, availability_snapshot
from app.services.cache_service import get_cached_occupancy, invalidate_occupancy_cache, set_cached_occupancy
from app.services.downgrade import Resolution, resolve
from app.services.tiers import TierTable

logger = get_logger(__name__)


async def find_identity_collisions(db: AsyncSession, name: str, email: str) -> tuple[str, ...]:
    """Return which identity fields ("name", "email") are already taken."""
    result = await db.execute(
        select(Registrant.name, Registrant.email).where(
            or_(Registrant.name == name, Registrant.email == email)
        )
    )
    taken_names, taken_emails = set(), set()
    for row_name, row_email in result.all():
        taken_names.add(row_name)
        taken_emails.add(row_email)

    fields = []
    if name in taken_names:
        fields.append("name")
    if email in taken_emails:
        fields.append("email")
    return tuple(fields)


async def _insert_registrant(
    db: AsyncSession,
    registration: RegistrationCreate,
    resolution: Resolution,
) -> Registrant:
    existing_ids = (await db.execute(select(Registrant.id))).scalars().all()

    registrant = Registrant(
        name=registration.name,
        email=registration.email,
        phone=registration.phone,
        drinks_alcohol=registration.drinks_alcohol,
        requested_tier=resolution.requested_level,
        effective_tier=resolution.level,
    )
    db.add(registrant)
    await db.flush()

    known = set(registration.known_registrant_ids)
    db.add_all(
        Relationship(
            new_registrant_id=registrant.id,
            known_registrant_id=known_id,
            knows_person=known_id in known,
        )
        for known_id in existing_ids
    )
    await db.flush()
    await db.refresh(registrant)
    return registrant


async def _admit(
    db: AsyncSession,
    table: TierTable,
    registration: RegistrationCreate,
    requested_level: int,
) -> tuple[Registrant, Resolution]:
    # Step 1: duplicate identity is reported before any tier mutation
    collisions = await find_identity_collisions(db, registration.name, registration.email)
    if collisions:
        raise DuplicateIdentity(collisions)

    max_attempts = table.cumulative_capacity(requested_level) + 1
    for attempt in range(1, max_attempts + 1):
        # Step 2: fresh snapshot, authoritative resolution
        rows = await seat_ledger.load_tier_rows(db)
        occupancy = {level: row.admitted for level, row in rows.items()}
        resolution = resolve(table, requested_level, occupancy)

        # Step 3
        if not resolution.admitted:
            raise FullyBooked(requested_level)

        # Step 4: compare-and-commit on the chosen tier
        row = rows.get(resolution.level)
        if row is None:
            logger.error("seat_tier_missing", level=resolution.level)
            raise StorageUnavailable()
        if not await seat_ledger.claim_seat(db, row):
            record_seat_claim_retry()
            logger.info(
                "seat_claim_conflict",
                level=resolution.level,
                requested=requested_level,
                attempt=attempt,
            )
            await db.rollback()
            continue

        # Step 5: registrant and relationships in the same transaction
        registrant = await _insert_registrant(db, registration, resolution)
        await db.commit()

        # The claim matched the row version, so the snapshot count was exact
        record_tier_occupancy({resolution.level: row.admitted + 1})
        return registrant, resolution

    # Every snapshot still had room but every claim lost its version check
    logger.error("seat_claim_attempts_exhausted", requested=requested_level, attempts=max_attempts)
    raise StorageUnavailable()


async def admit_registrant(
    db: AsyncSession,
    table: TierTable,
    registration: RegistrationCreate,
) -> tuple[Registrant, Resolution]:
    """
    Admit a registrant at the best tier their invitation code allows.

    Raises DuplicateIdentity, FullyBooked or StorageUnavailable. On any
    failure nothing is persisted.
    """
    requested_level = table.priority_for_code(registration.invitation_code)
    start = time.perf_counter()

    try:
        with admission_latency.time():
            registrant, resolution = await _admit(db, table, registration, requested_level)
    except DuplicateIdentity as exc:
        await db.rollback()
        record_admission("duplicate")
        logger.warning("admission_rejected", reason="duplicate_identity", fields=list(exc.fields))
        raise
    except FullyBooked:
        await db.rollback()
        record_admission("fully_booked")
        logger.warning("admission_rejected", reason="fully_booked", requested=requested_level)
        raise
    except StorageUnavailable:
        await db.rollback()
        record_admission("error")
        raise
    except IntegrityError as exc:
        # A concurrent submission with the same name or email won the insert
        await db.rollback()
        try:
            collisions = await find_identity_collisions(db, registration.name, registration.email)
        except SQLAlchemyError:
            collisions = ()
        if collisions:
            record_admission("duplicate")
            logger.warning("admission_rejected", reason="duplicate_identity", fields=list(collisions))
            raise DuplicateIdentity(collisions) from exc
        record_admission("error")
        logger.error("admission_failed", error=str(exc.orig))
        raise StorageUnavailable() from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        record_admission("error")
        logger.error("admission_failed", error=str(exc))
        raise StorageUnavailable() from exc

    await invalidate_occupancy_cache()
    record_admission("downgraded" if resolution.downgraded else "admitted")
    logger.info(
        "registrant_admitted",
        registrant_id=registrant.id,
        requested=resolution.requested_level,
        effective=resolution.level,
        path=list(resolution.visited),
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return registrant, resolution


async def preview_admission(
    db: AsyncSession,
    table: TierTable,
    invitation_code: str | None,
) -> tuple[int, Resolution, list[TierAvailability], bool]:
    """
    Advisory read path for the form: which tier would this code get now?
    May be served from a stale cached snapshot.
    """
    cached = True
    occupancy = await get_cached_occupancy()
    if occupancy is None:
        cached = False
        try:
            occupancy = await seat_ledger.load_occupancy(db)
        except SQLAlchemyError as exc:
            logger.error("availability_load_failed", error=str(exc))
            raise StorageUnavailable() from exc
        await set_cached_occupancy(occupancy)

    requested_level = table.priority_for_code(invitation_code)
    resolution = resolve(table, requested_level, occupancy)
    return requested_level, resolution, availability_snapshot(table, occupancy), cached


async def list_registrants(db: AsyncSession) -> list[Registrant]:
    try:
        result = await db.execute(select(Registrant).order_by(Registrant.name.asc()))
    except SQLAlchemyError as exc:
        logger.error("registrant_list_failed", error=str(exc))
        raise StorageUnavailable() from exc
    return list(result.scalars().all())


async def reset_registrations(db: AsyncSession, table: TierTable) -> int:
    """
    Administrative reset: remove every registrant and relationship and zero
    the ledger, all in one transaction.

    The ledger is zeroed first. That locks every tier row, so an admission
    that already claimed a seat commits before the deletes run and is
    removed with everyone else. Later claims fail the version check.
    """
    try:
        await seat_ledger.reset_ledger(db)
        await db.execute(delete(Relationship))
        result = await db.execute(delete(Registrant))
        count = result.rowcount
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("registrations_reset_failed", error=str(exc))
        raise StorageUnavailable() from exc

    await invalidate_occupancy_cache()
    record_tier_occupancy({level: 0 for level in table.levels})
    logger.info("registrations_reset", registrants_deleted=count, at=datetime.now(timezone.utc).isoformat())
    return count
