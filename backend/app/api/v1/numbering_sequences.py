"""
Numbering sequence endpoints.

Reads, template validation/preview and code allocation are open to any
authenticated user; create / update / delete / reset require ADMIN.

Each route owns its transaction: service calls only flush, the route commits
on success and rolls back before turning a domain error into an HTTP error.
"""
import logging
import math

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.db import get_db
from app.core.errors import (
    DuplicateSequenceError,
    InvalidCounterError,
    InvalidTemplateError,
    MissingContextError,
    NumberingError,
    SequenceInactiveError,
    SequenceNotFoundError,
)
from app.core.rbac import require_role
from app.models.sequence import SequenceDefinition
from app.models.user import User
from app.schemas.sequence import (
    AllocateRequest,
    AllocateResponse,
    SequenceCreate,
    SequenceListResponse,
    SequenceResetRequest,
    SequenceResponse,
    SequenceUpdate,
    TemplatePreset,
    TemplatePreviewRequest,
    TemplatePreviewResponse,
    TemplateValidateRequest,
    TemplateValidateResponse,
    TemplateVariable,
    TemplateVariableGroup,
    TemplateVariablesResponse,
)
from app.services import sequence_service
from app.services.sequence_template import (
    STATIC_SNIPPETS,
    TEMPLATE_PRESETS,
    TOKEN_GROUPS,
    render_preview,
    validate_template,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/numbering-sequences", tags=["numbering-sequences"])
settings = get_settings()

_STATUS_BY_ERROR: dict[type[NumberingError], int] = {
    SequenceNotFoundError: status.HTTP_404_NOT_FOUND,
    SequenceInactiveError: status.HTTP_409_CONFLICT,
    DuplicateSequenceError: status.HTTP_409_CONFLICT,
    InvalidTemplateError: status.HTTP_400_BAD_REQUEST,
    MissingContextError: status.HTTP_400_BAD_REQUEST,
    InvalidCounterError: status.HTTP_400_BAD_REQUEST,
}


def _http_error(exc: NumberingError) -> HTTPException:
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=str(exc))


def _to_response(sequence: SequenceDefinition) -> SequenceResponse:
    data = SequenceResponse.model_validate(sequence)
    data.preview = render_preview(
        sequence.prefix_template,
        sequence.next_number,
        width=settings.sequence_counter_width,
    )
    return data


# ---------------------------------------------------------------------------
# Template builder helpers
# ---------------------------------------------------------------------------

@router.get("/variables", response_model=TemplateVariablesResponse)
async def get_template_variables(
    _user: User = Depends(require_role()),
) -> TemplateVariablesResponse:
    """Recognised template variables, static snippets and preset templates."""
    groups = [
        TemplateVariableGroup(
            name=group_name.capitalize(),
            variables=[
                TemplateVariable(code=f"{{{name}}}", name=label, example=example)
                for name, (label, example) in tokens.items()
            ],
        )
        for group_name, tokens in TOKEN_GROUPS.items()
    ]
    static = [
        TemplateVariable(code=snippet, name=label, example=snippet)
        for snippet, label in STATIC_SNIPPETS.items()
    ]
    presets = [
        TemplatePreset(
            label=label,
            template=template,
            category=category,
            example=render_preview(template, 1, width=settings.sequence_counter_width),
        )
        for label, template, category in TEMPLATE_PRESETS
    ]
    return TemplateVariablesResponse(groups=groups, static=static, presets=presets)


@router.post("/validate", response_model=TemplateValidateResponse)
async def validate_prefix_template(
    payload: TemplateValidateRequest,
    _user: User = Depends(require_role()),
) -> TemplateValidateResponse:
    invalid = sorted(validate_template(payload.template))
    return TemplateValidateResponse(valid=not invalid, invalid_tokens=invalid)


@router.post("/preview", response_model=TemplatePreviewResponse)
async def preview_prefix_template(
    payload: TemplatePreviewRequest,
    _user: User = Depends(require_role()),
) -> TemplatePreviewResponse:
    """Render an unsaved template with example values (no counter is consumed)."""
    preview = render_preview(
        payload.template,
        payload.next_number,
        payload.context,
        width=settings.sequence_counter_width,
    )
    return TemplatePreviewResponse(
        preview=preview,
        invalid_tokens=sorted(validate_template(payload.template)),
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get("", response_model=SequenceListResponse)
async def list_sequences(
    search: str = "",
    page: int = 1,
    page_size: int = 20,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_role()),
) -> SequenceListResponse:
    """List sequences ordered by code; *search* matches code, template and description."""
    page = max(page, 1)
    page_size = min(max(page_size, 1), 100)

    rows, total = await sequence_service.list_sequences(db, search.strip(), page, page_size)
    return SequenceListResponse(
        items=[_to_response(s) for s in rows],
        total=total,
        page=page,
        page_size=page_size,
        pages=math.ceil(total / page_size) if total else 0,
    )


@router.post("", response_model=SequenceResponse, status_code=status.HTTP_201_CREATED)
async def create_sequence(
    payload: SequenceCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_role("ADMIN")),
) -> SequenceResponse:
    try:
        sequence = await sequence_service.create_sequence(db, **payload.model_dump())
    except NumberingError as exc:
        await db.rollback()
        raise _http_error(exc) from exc

    await db.commit()
    await db.refresh(sequence)
    logger.info("Sequence %s created by %s", sequence.sequence_code, admin.user_code)
    return _to_response(sequence)


@router.get("/{sequence_code}", response_model=SequenceResponse)
async def get_sequence(
    sequence_code: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_role()),
) -> SequenceResponse:
    try:
        sequence = await sequence_service.get_sequence(db, sequence_code)
    except NumberingError as exc:
        raise _http_error(exc) from exc
    return _to_response(sequence)


@router.put("/{sequence_code}", response_model=SequenceResponse)
async def update_sequence(
    sequence_code: str,
    payload: SequenceUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_role("ADMIN")),
) -> SequenceResponse:
    """Update template, description or active flag. The code itself is immutable."""
    try:
        sequence = await sequence_service.update_sequence(
            db, sequence_code, **payload.model_dump(exclude_unset=True)
        )
    except NumberingError as exc:
        await db.rollback()
        raise _http_error(exc) from exc

    await db.commit()
    await db.refresh(sequence)
    logger.info("Sequence %s updated by %s", sequence_code, admin.user_code)
    return _to_response(sequence)


@router.delete("/{sequence_code}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sequence(
    sequence_code: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_role("ADMIN")),
) -> None:
    try:
        await sequence_service.delete_sequence(db, sequence_code)
    except NumberingError as exc:
        await db.rollback()
        raise _http_error(exc) from exc

    await db.commit()
    logger.info("Sequence %s deleted by %s", sequence_code, admin.user_code)


@router.post("/{sequence_code}/reset", response_model=SequenceResponse)
async def reset_counter(
    sequence_code: str,
    payload: SequenceResetRequest,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_role("ADMIN")),
) -> SequenceResponse:
    """Set next_number to an explicit positive value."""
    try:
        sequence = await sequence_service.reset_counter(db, sequence_code, payload.next_number)
    except NumberingError as exc:
        await db.rollback()
        raise _http_error(exc) from exc

    await db.commit()
    await db.refresh(sequence)
    logger.info("Sequence %s reset to %d by %s", sequence_code, payload.next_number, admin.user_code)
    return _to_response(sequence)


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------

@router.post("/{sequence_code}/next", response_model=AllocateResponse)
async def allocate_next_code(
    sequence_code: str,
    payload: AllocateRequest,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_role()),
) -> AllocateResponse:
    """Issue the next code for *sequence_code* using the document's real context values."""
    try:
        allocated = await sequence_service.allocate_next_code(db, sequence_code, payload.context)
    except NumberingError as exc:
        await db.rollback()
        raise _http_error(exc) from exc

    await db.commit()
    return AllocateResponse(
        sequence_code=allocated.sequence_code,
        number=allocated.number,
        code=allocated.code,
    )
