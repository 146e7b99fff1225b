from typing import Any, Callable

from sqlalchemy import JSON, Index, LargeBinary, Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from lang_plane.base import Blob, RepositoryLog, RepositoryRow, StageBlobStore
from lang_plane.logging_config import get_logger

_LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class RepositoryModel(Base):
    __tablename__ = "repository"
    __table_args__ = (
        Index("ix_repository_string", "branch", "lang", "component", "stringid"),
        Index("ix_repository_lang_component", "lang", "component"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    branch: Mapped[int] = mapped_column(nullable=False)
    lang: Mapped[str] = mapped_column(nullable=False)
    component: Mapped[str] = mapped_column(nullable=False)
    stringid: Mapped[str] = mapped_column(nullable=False)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    timemodified: Mapped[int] = mapped_column(nullable=False)
    deleted: Mapped[bool] = mapped_column(default=False)
    commitmsg: Mapped[str] = mapped_column(Text, default="")
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def to_row(self) -> RepositoryRow:
        return RepositoryRow(
            branch=self.branch,
            lang=self.lang,
            component=self.component,
            stringid=self.stringid,
            text=self.text,
            timemodified=self.timemodified,
            deleted=self.deleted,
            commitmsg=self.commitmsg,
            meta=self.meta,
            id=self.id,
        )


class StageBlobModel(Base):
    __tablename__ = "stage_blobs"
    owner_id: Mapped[str] = mapped_column(primary_key=True)
    stage_id: Mapped[str] = mapped_column(primary_key=True)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


class SqlRepositoryLog(RepositoryLog):
    def __init__(self, session_maker: Callable[[], Session]) -> None:
        self.session_maker = session_maker

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("SqlRepositoryLog(...)")
        else:
            p.text("SqlRepositoryLog()")

    def insert(self, row: RepositoryRow) -> int:
        with self.session_maker() as session:
            item = RepositoryModel(
                branch=row.branch,
                lang=row.lang,
                component=row.component,
                stringid=row.stringid,
                text=row.text,
                timemodified=row.timemodified,
                deleted=row.deleted,
                commitmsg=row.commitmsg,
                meta=row.meta,
            )
            session.add(item)
            session.commit()
            return item.id

    def query(
        self,
        branch: int,
        lang: str,
        component: str,
        string_ids: list[str] | None = None,
        max_timestamp: int | None = None,
        include_deleted: bool = False,
    ) -> list[RepositoryRow]:
        stmt = select(RepositoryModel).where(
            RepositoryModel.branch == branch,
            RepositoryModel.lang == lang,
            RepositoryModel.component == component,
        )
        if string_ids:
            stmt = stmt.where(RepositoryModel.stringid.in_(string_ids))
        if max_timestamp is not None:
            stmt = stmt.where(RepositoryModel.timemodified <= max_timestamp)
        if not include_deleted:
            stmt = stmt.where(RepositoryModel.deleted.is_(False))
        stmt = stmt.order_by(RepositoryModel.stringid, RepositoryModel.id)

        with self.session_maker() as session:
            return [item.to_row() for item in session.execute(stmt).scalars()]

    def rows_for_string(
        self, component: str, stringid: str, include_deleted: bool = False
    ) -> list[RepositoryRow]:
        stmt = select(RepositoryModel).where(
            RepositoryModel.component == component,
            RepositoryModel.stringid == stringid,
        )
        if not include_deleted:
            stmt = stmt.where(RepositoryModel.deleted.is_(False))
        stmt = stmt.order_by(
            RepositoryModel.lang,
            RepositoryModel.branch.desc(),
            RepositoryModel.timemodified.desc(),
            RepositoryModel.id.desc(),
        )

        with self.session_maker() as session:
            return [item.to_row() for item in session.execute(stmt).scalars()]

    def component_names(self, lang: str) -> list[str]:
        stmt = (
            select(RepositoryModel.component)
            .where(RepositoryModel.lang == lang)
            .group_by(RepositoryModel.component)
            .order_by(RepositoryModel.component)
        )
        with self.session_maker() as session:
            return list(session.execute(stmt).scalars().all())

    def branch_lang_components(
        self,
        branch: int | None = None,
        lang: str | None = None,
        component: str | None = None,
    ) -> list[tuple[int, str, str]]:
        columns = (
            RepositoryModel.branch,
            RepositoryModel.lang,
            RepositoryModel.component,
        )
        stmt = select(*columns)
        if branch is not None:
            stmt = stmt.where(RepositoryModel.branch == branch)
        if lang is not None:
            stmt = stmt.where(RepositoryModel.lang == lang)
        if component is not None:
            stmt = stmt.where(RepositoryModel.component == component)
        stmt = stmt.group_by(*columns).order_by(*columns)

        with self.session_maker() as session:
            return [
                (row.branch, row.lang, row.component)
                for row in session.execute(stmt).all()
            ]


class SqlStageBlobStore(StageBlobStore):
    def __init__(self, session_maker: Callable[[], Session]) -> None:
        self.session_maker = session_maker

    def put(self, owner_id: str, stage_id: str, data: Blob) -> bool:
        try:
            with self.session_maker() as session:
                item = session.get(StageBlobModel, (owner_id, stage_id))
                if item is None:
                    session.add(
                        StageBlobModel(
                            owner_id=owner_id, stage_id=stage_id, content=data
                        )
                    )
                else:
                    item.content = data
                session.commit()
        except SQLAlchemyError as error:
            _LOGGER.warning(
                "stage_blob_write_failed",
                owner_id=owner_id,
                stage_id=stage_id,
                error=str(error),
            )
            return False
        return True

    def get(self, owner_id: str, stage_id: str) -> Blob | None:
        try:
            with self.session_maker() as session:
                item = session.get(StageBlobModel, (owner_id, stage_id))
                return item.content if item else None
        except SQLAlchemyError as error:
            _LOGGER.warning(
                "stage_blob_read_failed",
                owner_id=owner_id,
                stage_id=stage_id,
                error=str(error),
            )
            return None


def create_sql_repository_log(
    session_maker: Callable[[], Session],
) -> SqlRepositoryLog:
    return SqlRepositoryLog(session_maker)


def create_sql_stage_blob_store(
    session_maker: Callable[[], Session],
) -> SqlStageBlobStore:
    return SqlStageBlobStore(session_maker)
