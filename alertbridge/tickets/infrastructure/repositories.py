"""
Ticket Infrastructure Repositories
==================================

SQLAlchemy implementation of the ITicketStore interface.

Every operation runs in its own session and commits before returning, so a
read issued after a write always observes it. Driver errors are wrapped in
TicketStoreException; the application layer never sees SQLAlchemy types.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertbridge.config import (
    LinkType, Severity, TicketKind, TicketStatus, TransitionAction,
    OPEN_STATUSES, VALID_LINK_TYPES,
)
from alertbridge.core import TicketNotFoundException, TicketStoreException
from alertbridge.shared.infrastructure.logging import get_logger
from alertbridge.tickets.application.dto import TicketInput
from alertbridge.tickets.application.services import ITicketStore
from alertbridge.tickets.domain import Ticket, TicketLink
from alertbridge.tickets.infrastructure.models import (
    TicketCommentModel, TicketLabelModel, TicketLinkModel, TicketModel
)

logger = get_logger(__name__)

MAX_SUMMARY_LENGTH = 1000
MAX_DESCRIPTION_LENGTH = 32767
MAX_CI_LENGTH = 255

TRANSITIONS: Dict[TransitionAction, TicketStatus] = {
    TransitionAction.START: TicketStatus.IN_PROGRESS,
    TransitionAction.PEND: TicketStatus.PENDING,
    TransitionAction.RESOLVE: TicketStatus.RESOLVED,
    TransitionAction.CLOSE: TicketStatus.CLOSED,
    TransitionAction.REOPEN: TicketStatus.OPEN,
}


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLAlchemyTicketStore(ITicketStore):
    """
    Reference ticket store backed by SQLAlchemy.

    Args:
        session_maker: Async session factory
        project_keys: Projects tickets may be created in (None accepts any)
        link_types: Link types this store supports (defaults to all)
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        project_keys: Optional[Iterable[str]] = None,
        link_types: Optional[Iterable[LinkType]] = None,
    ):
        self._session_maker = session_maker
        self._project_keys = set(project_keys) if project_keys is not None else None
        self._link_types = list(link_types) if link_types is not None else list(VALID_LINK_TYPES)

    # ========== Creation ==========

    async def validate_create(self, kind: TicketKind, fields: TicketInput) -> Dict[str, str]:
        problems: Dict[str, str] = {}

        if not fields.summary or not fields.summary.strip():
            problems["summary"] = "is required"
        elif len(fields.summary) > MAX_SUMMARY_LENGTH:
            problems["summary"] = f"exceeds {MAX_SUMMARY_LENGTH} characters"

        if len(fields.description) > MAX_DESCRIPTION_LENGTH:
            problems["description"] = f"exceeds {MAX_DESCRIPTION_LENGTH} characters"

        if self._project_keys is not None and fields.project_key not in self._project_keys:
            problems["project_key"] = f"unknown project '{fields.project_key}'"

        if fields.ci_id and len(fields.ci_id) > MAX_CI_LENGTH:
            problems["ci_id"] = f"exceeds {MAX_CI_LENGTH} characters"

        return problems

    async def create_ticket(self, kind: TicketKind, fields: TicketInput) -> Ticket:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_maker() as session:
                model = TicketModel(
                    kind=kind.value,
                    project_key=fields.project_key,
                    summary=fields.summary,
                    description=fields.description,
                    ci_id=fields.ci_id,
                    service=fields.service,
                    severity=fields.severity.value,
                    status=TicketStatus.OPEN.value,
                    custom_fields=dict(fields.custom_fields),
                    created_at=now,
                    status_changed_at=now,
                )
                session.add(model)
                await session.flush()

                model.key = f"{fields.project_key}-{model.id}"
                labels = sorted(set(fields.labels))
                for label in labels:
                    session.add(TicketLabelModel(ticket_id=model.id, label=label))

                await session.commit()
                return self._to_domain(model, labels)
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to create {kind.value}: {e}") from e

    # ========== Queries ==========

    async def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        try:
            async with self._session_maker() as session:
                model = await session.get(TicketModel, ticket_id)
                if model is None:
                    return None
                labels = await self._labels_for(session, [model.id])
                return self._to_domain(model, labels.get(model.id, []))
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to read ticket {ticket_id}: {e}") from e

    async def find_tickets_by_ci(
        self,
        ci_id: str,
        statuses: Sequence[TicketStatus],
        kind: Optional[TicketKind] = None
    ) -> List[Ticket]:
        conditions = [
            TicketModel.ci_id == ci_id,
            TicketModel.status.in_([s.value for s in statuses]),
        ]
        if kind is not None:
            conditions.append(TicketModel.kind == kind.value)
        return await self._find(and_(*conditions))

    async def find_open_tickets(self, kinds: Sequence[TicketKind]) -> List[Ticket]:
        return await self._find(and_(
            TicketModel.kind.in_([k.value for k in kinds]),
            TicketModel.status.in_([s.value for s in OPEN_STATUSES]),
        ))

    async def get_comments(self, ticket_id: int) -> List[str]:
        """Comment bodies in the order they were added."""
        try:
            async with self._session_maker() as session:
                stmt = (
                    select(TicketCommentModel.body)
                    .where(TicketCommentModel.ticket_id == ticket_id)
                    .order_by(TicketCommentModel.id)
                )
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to read comments of {ticket_id}: {e}") from e

    # ========== Links ==========

    async def get_links(self, ticket_id: int) -> List[TicketLink]:
        try:
            async with self._session_maker() as session:
                stmt = (
                    select(TicketLinkModel)
                    .where(TicketLinkModel.source_id == ticket_id)
                    .order_by(TicketLinkModel.id)
                )
                result = await session.execute(stmt)
                return [
                    TicketLink(
                        source_id=link.source_id,
                        destination_id=link.destination_id,
                        link_type=LinkType(link.link_type),
                    )
                    for link in result.scalars().all()
                ]
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to read links of {ticket_id}: {e}") from e

    async def create_link(self, source_id: int, destination_id: int, link_type: LinkType) -> bool:
        if link_type not in self._link_types:
            raise TicketStoreException(f"Link type '{link_type.value}' is not supported")

        try:
            async with self._session_maker() as session:
                for ticket_id in (source_id, destination_id):
                    if await session.get(TicketModel, ticket_id) is None:
                        raise TicketNotFoundException(ticket_id)

                stmt = select(TicketLinkModel.id).where(and_(
                    TicketLinkModel.source_id == source_id,
                    TicketLinkModel.destination_id == destination_id,
                    TicketLinkModel.link_type == link_type.value,
                ))
                if (await session.execute(stmt)).scalar_one_or_none() is not None:
                    return False

                session.add(TicketLinkModel(
                    source_id=source_id,
                    destination_id=destination_id,
                    link_type=link_type.value,
                ))
                await session.commit()
                return True
        except IntegrityError:
            logger.debug(
                "Link already exists",
                extra={"source_id": source_id, "destination_id": destination_id}
            )
            return False
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to link {source_id} -> {destination_id}: {e}") from e

    async def supported_link_types(self) -> List[LinkType]:
        return list(self._link_types)

    # ========== Mutations ==========

    async def transition_ticket(self, ticket_id: int, action: TransitionAction) -> Ticket:
        target = TRANSITIONS[action]
        try:
            async with self._session_maker() as session:
                model = await self._require(session, ticket_id)
                if model.status != target.value:
                    model.status = target.value
                    model.status_changed_at = datetime.now(timezone.utc)
                await session.commit()
                labels = await self._labels_for(session, [model.id])
                return self._to_domain(model, labels.get(model.id, []))
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to {action.value} ticket {ticket_id}: {e}") from e

    async def assign_ticket(self, ticket_id: int, assignee: str) -> None:
        try:
            async with self._session_maker() as session:
                model = await self._require(session, ticket_id)
                model.assignee = assignee
                await session.commit()
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to assign ticket {ticket_id}: {e}") from e

    async def add_comment(self, ticket_id: int, text: str) -> None:
        try:
            async with self._session_maker() as session:
                await self._require(session, ticket_id)
                session.add(TicketCommentModel(ticket_id=ticket_id, body=text))
                await session.commit()
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to comment on ticket {ticket_id}: {e}") from e

    async def add_label(self, ticket_id: int, label: str) -> bool:
        try:
            async with self._session_maker() as session:
                await self._require(session, ticket_id)
                stmt = select(TicketLabelModel.id).where(and_(
                    TicketLabelModel.ticket_id == ticket_id,
                    TicketLabelModel.label == label,
                ))
                if (await session.execute(stmt)).scalar_one_or_none() is not None:
                    return False
                session.add(TicketLabelModel(ticket_id=ticket_id, label=label))
                await session.commit()
                return True
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Failed to label ticket {ticket_id}: {e}") from e

    # ========== Helpers ==========

    async def _find(self, condition) -> List[Ticket]:
        try:
            async with self._session_maker() as session:
                stmt = (
                    select(TicketModel)
                    .where(condition)
                    .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
                )
                models = list((await session.execute(stmt)).scalars().all())
                labels = await self._labels_for(session, [m.id for m in models])
                return [self._to_domain(m, labels.get(m.id, [])) for m in models]
        except SQLAlchemyError as e:
            raise TicketStoreException(f"Ticket search failed: {e}") from e

    @staticmethod
    async def _require(session: AsyncSession, ticket_id: int) -> TicketModel:
        model = await session.get(TicketModel, ticket_id)
        if model is None:
            raise TicketNotFoundException(ticket_id)
        return model

    @staticmethod
    async def _labels_for(session: AsyncSession, ticket_ids: List[int]) -> Dict[int, List[str]]:
        if not ticket_ids:
            return {}
        stmt = select(TicketLabelModel).where(TicketLabelModel.ticket_id.in_(ticket_ids))
        labels: Dict[int, List[str]] = {}
        for row in (await session.execute(stmt)).scalars().all():
            labels.setdefault(row.ticket_id, []).append(row.label)
        return labels

    @staticmethod
    def _to_domain(model: TicketModel, labels: Iterable[str]) -> Ticket:
        return Ticket(
            id=model.id,
            key=model.key,
            kind=TicketKind(model.kind),
            project_key=model.project_key,
            summary=model.summary,
            status=TicketStatus(model.status),
            created_at=_aware(model.created_at),
            description=model.description or "",
            ci_id=model.ci_id,
            service=model.service,
            severity=Severity(model.severity),
            assignee=model.assignee,
            status_changed_at=_aware(model.status_changed_at),
            labels=frozenset(labels),
            custom_fields=dict(model.custom_fields or {}),
        )
