"""
Numbering sequences - persistence and atomic counter allocation.

Shared by the admin API and by any document-creation flow that needs a new
document code (sales order, purchase order, invoice, cash advance, ...).

None of these functions commit.  The caller owns the transaction: commit on
success, roll back on any exception.  allocate_next_code advances the counter
with a single UPDATE ... RETURNING, so a rolled-back allocation leaves the
stored counter exactly where it was.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    DuplicateSequenceError,
    InvalidCounterError,
    InvalidTemplateError,
    SequenceInactiveError,
    SequenceNotFoundError,
)
from app.models.sequence import SequenceDefinition
from app.services.sequence_template import render_code, render_preview, validate_template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocatedCode:
    sequence_code: str
    number: int
    code: str


def _counter_width() -> int:
    return get_settings().sequence_counter_width


def _check_template(template: str) -> None:
    invalid = validate_template(template)
    if invalid:
        raise InvalidTemplateError(invalid)


async def get_sequence(db: AsyncSession, sequence_code: str) -> SequenceDefinition:
    result = await db.execute(
        select(SequenceDefinition)
        .where(SequenceDefinition.sequence_code == sequence_code)
        .execution_options(populate_existing=True)
    )
    sequence = result.scalars().first()
    if sequence is None:
        raise SequenceNotFoundError(sequence_code)
    return sequence


async def list_sequences(
    db: AsyncSession,
    search: str = "",
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[SequenceDefinition], int]:
    """Return one page of sequences ordered by code, plus the total match count."""
    stmt = select(SequenceDefinition)
    if search:
        # literal substring match: % and _ in the search text are not wildcards
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        term = f"%{escaped}%"
        stmt = stmt.where(
            or_(
                SequenceDefinition.sequence_code.ilike(term, escape="\\"),
                SequenceDefinition.prefix_template.ilike(term, escape="\\"),
                SequenceDefinition.description.ilike(term, escape="\\"),
            )
        )

    total_result = await db.execute(select(func.count()).select_from(stmt.subquery()))
    total = total_result.scalar_one()

    offset = (page - 1) * page_size
    result = await db.execute(
        stmt.order_by(SequenceDefinition.sequence_code)
        .offset(offset)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all()), total


async def create_sequence(
    db: AsyncSession,
    *,
    sequence_code: str,
    prefix_template: str = "",
    next_number: int = 1,
    description: str = "",
    is_active: bool = True,
) -> SequenceDefinition:
    if next_number < 1:
        raise InvalidCounterError(next_number)
    _check_template(prefix_template)

    existing = await db.execute(
        select(SequenceDefinition.id).where(SequenceDefinition.sequence_code == sequence_code)
    )
    if existing.first() is not None:
        raise DuplicateSequenceError(sequence_code)

    sequence = SequenceDefinition(
        sequence_code=sequence_code,
        prefix_template=prefix_template,
        next_number=next_number,
        description=description,
        is_active=is_active,
    )
    db.add(sequence)
    try:
        await db.flush()
    except IntegrityError as exc:
        # lost a race with a concurrent create of the same code
        raise DuplicateSequenceError(sequence_code) from exc

    logger.info("Created numbering sequence %s (template=%r)", sequence_code, prefix_template)
    return sequence


async def update_sequence(
    db: AsyncSession,
    sequence_code: str,
    *,
    prefix_template: str | None = None,
    description: str | None = None,
    is_active: bool | None = None,
) -> SequenceDefinition:
    """Edit template, description or active flag. Code and counter are not editable here."""
    if prefix_template is not None:
        _check_template(prefix_template)

    sequence = await get_sequence(db, sequence_code)
    if prefix_template is not None:
        sequence.prefix_template = prefix_template
    if description is not None:
        sequence.description = description
    if is_active is not None:
        sequence.is_active = is_active

    await db.flush()
    logger.info("Updated numbering sequence %s", sequence_code)
    return sequence


async def delete_sequence(db: AsyncSession, sequence_code: str) -> None:
    sequence = await get_sequence(db, sequence_code)
    await db.delete(sequence)
    await db.flush()
    logger.info("Deleted numbering sequence %s", sequence_code)


async def reset_counter(db: AsyncSession, sequence_code: str, new_value: int) -> SequenceDefinition:
    """Administrative override of next_number. The template is left untouched."""
    if new_value < 1:
        raise InvalidCounterError(new_value)

    sequence = await get_sequence(db, sequence_code)
    previous = sequence.next_number
    sequence.next_number = new_value
    await db.flush()
    logger.info("Reset numbering sequence %s from %d to %d", sequence_code, previous, new_value)
    return sequence


async def allocate_next_code(
    db: AsyncSession,
    sequence_code: str,
    context: Mapping[str, str] | None = None,
    today: date | None = None,
) -> AllocatedCode:
    """
    Issue the next document code for *sequence_code*.

    The counter is advanced by one atomic ``UPDATE ... RETURNING``; the row
    lock it takes serialises concurrent callers, so every caller receives a
    distinct number.  If rendering fails afterwards (missing context values)
    the error propagates and the caller's rollback undoes the increment.
    """
    stmt = (
        update(SequenceDefinition)
        .where(
            SequenceDefinition.sequence_code == sequence_code,
            SequenceDefinition.is_active.is_(True),
        )
        .values(next_number=SequenceDefinition.next_number + 1, updated_at=func.now())
        .returning(SequenceDefinition.next_number, SequenceDefinition.prefix_template)
        .execution_options(synchronize_session=False)
    )
    row = (await db.execute(stmt)).first()

    if row is None:
        exists = await db.execute(
            select(SequenceDefinition.id).where(SequenceDefinition.sequence_code == sequence_code)
        )
        if exists.first() is None:
            raise SequenceNotFoundError(sequence_code)
        raise SequenceInactiveError(sequence_code)

    number = row.next_number - 1
    code = render_code(
        row.prefix_template,
        number,
        context or {},
        today or date.today(),
        width=_counter_width(),
    )
    logger.info("Allocated %s from sequence %s (number=%d)", code, sequence_code, number)
    return AllocatedCode(sequence_code=sequence_code, number=number, code=code)


async def preview_sequence(
    db: AsyncSession,
    sequence_code: str,
    context: Mapping[str, str] | None = None,
    today: date | None = None,
) -> str:
    """The code the next allocation would produce, without advancing the counter."""
    sequence = await get_sequence(db, sequence_code)
    return render_preview(
        sequence.prefix_template,
        sequence.next_number,
        context,
        today,
        width=_counter_width(),
    )
