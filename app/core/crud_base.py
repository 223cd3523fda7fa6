# app/core/crud_base.py

"""
공통 CRUD(Create, Read, Update, Delete) 작업을 위한 기본 클래스 모듈입니다.
모든 메서드는 비동기(async) 환경에서 동작합니다.
"""

import logging
import math
from datetime import date, datetime, time, timedelta, UTC
from typing import Generic, List, Optional, Type, TypeVar, Any, Dict, Tuple

from sqlalchemy import func
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)


def page_meta(total: int, page: int, limit: int) -> Dict[str, int]:
    """목록 응답의 meta 블록을 생성합니다."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def day_start(value: date) -> datetime:
    """날짜 필터의 시작 시각 (UTC 00:00, 포함)"""
    return datetime.combine(value, time.min, tzinfo=UTC)


def day_end(value: date) -> datetime:
    """날짜 필터의 종료 시각 (다음 날 UTC 00:00, 미포함)"""
    return datetime.combine(value + timedelta(days=1), time.min, tzinfo=UTC)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    모든 CRUD 작업에 대한 기본 클래스를 정의합니다.
    """
    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """ID를 기준으로 단일 레코드를 조회합니다."""
        return await db.get(self.model, id)

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, **kwargs: Any
    ) -> List[ModelType]:
        """
        여러 레코드를 조회합니다. 필터링을 위한 키워드 인자를 지원합니다.
        """
        query = select(self.model).offset(skip).limit(limit)

        for field, value in kwargs.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)

        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_attribute(
        self, db: AsyncSession, *, attribute: str, value: Any
    ) -> Optional[ModelType]:
        statement = select(self.model).where(getattr(self.model, attribute) == value)
        response = await db.execute(statement)
        return response.scalars().first()

    async def count(self, db: AsyncSession, **kwargs: Any) -> int:
        """조건(키워드 인자)을 만족하는 레코드 수를 반환합니다."""
        query = select(func.count()).select_from(self.model)
        for field, value in kwargs.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)
        result = await db.execute(query)
        return result.scalar_one()

    async def paginate(
        self,
        db: AsyncSession,
        *,
        query,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Any], int]:
        """
        임의의 select 문에 대해 (현재 페이지 항목, 전체 건수)를 반환합니다.
        정렬은 호출 측에서 query 에 지정합니다.
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total = (await db.execute(count_query)).scalar_one()

        paged = query.offset((page - 1) * limit).limit(limit)
        result = await db.execute(paged)
        return result.scalars().all(), total

    def order_clause(self, sort_by: str, sort_order: str, allowed: Dict[str, Any]):
        """허용된 정렬 필드 맵에서 ORDER BY 절을 만듭니다."""
        column = allowed.get(sort_by)
        if column is None:
            logger.debug("Unknown sort field '%s' for %s", sort_by, self.model.__name__)
            column = getattr(self.model, "created_at", self.model.id)
        return column.asc() if sort_order == "asc" else column.desc()

    async def create(self, db: AsyncSession, *, obj_in: CreateSchemaType, **extra: Any) -> ModelType:
        """
        새로운 레코드를 생성합니다. extra 로 스키마에 없는 컬럼 값을 함께 지정할 수 있습니다.
        """
        data = obj_in.model_dump() if isinstance(obj_in, BaseModel) else dict(obj_in)
        data.update(extra)
        db_obj = self.model.model_validate(data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self, db: AsyncSession, *, db_obj: ModelType, obj_in: UpdateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        기존 레코드를 업데이트합니다. 전달된 필드만 반영합니다.
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(db_obj, key, value)

        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: Any) -> Optional[ModelType]:
        """
        ID를 기준으로 레코드를 삭제합니다.
        """
        db_obj = await db.get(self.model, id)
        if db_obj:
            await db.delete(db_obj)
            await db.commit()
        return db_obj
