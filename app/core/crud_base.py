# app/core/crud_base.py

"""
공통 CRUD(Create, Read, Update, Delete) 작업을 위한 기본 클래스 모듈입니다.
모든 메서드는 비동기(async) 환경에 맞게 작성되었습니다.

- `deleted_at` 컬럼을 가진 모델은 소프트 삭제 대상이며, 기본 조회에서 제외됩니다.
- `changed_by`가 전달되면 같은 트랜잭션 안에서 감사 로그(shared.audit_logs)가 함께 기록됩니다.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar, Any, Dict
from datetime import date, datetime, timedelta, UTC

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

from app.domains.shared.services import record_audit

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    모든 CRUD 작업에 대한 기본 클래스를 정의합니다.
    """
    def __init__(self, model: Type[ModelType]):
        self.model = model
        self.soft_delete = hasattr(model, "deleted_at")

    def _not_deleted(self) -> List[Any]:
        if self.soft_delete:
            return [self.model.deleted_at.is_(None)]
        return []

    async def get(self, db: AsyncSession, id: Any, *, include_deleted: bool = False) -> Optional[ModelType]:
        """
        ID를 기준으로 단일 레코드를 조회합니다. 소프트 삭제된 레코드는 기본적으로 제외합니다.
        """
        db_obj = await db.get(self.model, id, populate_existing=True)
        if db_obj is not None and self.soft_delete and not include_deleted and db_obj.deleted_at is not None:
            return None
        return db_obj

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, include_deleted: bool = False, **kwargs: Any
    ) -> List[ModelType]:
        """
        여러 레코드를 조회합니다. 필터링을 위한 키워드 인자를 지원합니다.
        """
        query = select(self.model)
        if not include_deleted:
            query = query.where(*self._not_deleted())

        for field, value in kwargs.items():
            if hasattr(self.model, field) and value is not None:
                query = query.where(getattr(self.model, field) == value)

        query = query.order_by(self.model.id).offset(skip).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_attribute(
        self, db: AsyncSession, *, attribute: str, value: Any, include_deleted: bool = False
    ) -> Optional[ModelType]:
        statement = select(self.model).where(getattr(self.model, attribute) == value)
        if not include_deleted:
            statement = statement.where(*self._not_deleted())
        response = await db.execute(statement)
        return response.scalars().first()

    async def get_filtered(
        self,
        db: AsyncSession,
        *,
        filters: Optional[Dict[str, Any]] = None,  # 다중 속성 필터: {"attribute_name": "value"}
        date_range_field: Optional[str] = None,    # 기간 검색을 적용할 날짜 필드 이름 (예: "purchase_date")
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        order_by_field: Optional[str] = None,
        order_desc: bool = True,
        include_deleted: bool = False,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        다중 속성 및 기간 검색 기능을 포함한 다중 조회.
        값이 None인 필터는 무시합니다.
        """
        query = select(self.model)
        conditions = [] if include_deleted else self._not_deleted()

        # 1. 다중 속성 필터링
        if filters:
            for attribute, value in filters.items():
                if value is None:
                    continue
                if hasattr(self.model, attribute):
                    conditions.append(getattr(self.model, attribute) == value)
                else:
                    logger.warning(f"Model {self.model.__name__} has no attribute '{attribute}'")

        # 2. 기간 검색 필터링
        if date_range_field and hasattr(self.model, date_range_field):
            date_field = getattr(self.model, date_range_field)
            if start_date is not None:
                conditions.append(date_field >= start_date)
            if end_date is not None:
                # end_date 당일까지 포함하기 위함
                conditions.append(date_field < end_date + timedelta(days=1))

        if conditions:
            query = query.where(*conditions)

        # 3. 정렬
        if order_by_field and hasattr(self.model, order_by_field):
            column = getattr(self.model, order_by_field)
            query = query.order_by(column.desc() if order_desc else column)
        else:
            query = query.order_by(self.model.id.desc())

        # 4. 페이징
        query = query.offset(skip).limit(limit)

        result = await db.execute(query)
        return result.scalars().all()

    async def create(
        self, db: AsyncSession, *, obj_in: CreateSchemaType, changed_by: Optional[int] = None
    ) -> ModelType:
        """
        새로운 레코드를 생성합니다.
        """
        db_obj = self.model.model_validate(obj_in)
        db.add(db_obj)
        await db.flush()
        if changed_by is not None:
            record_audit(db, table_name=self.model.__tablename__, record_id=db_obj.id,
                         operation="INSERT", new_data=db_obj, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: UpdateSchemaType,
        changed_by: Optional[int] = None,
    ) -> ModelType:
        """
        기존 레코드를 업데이트합니다. (exclude_unset: 전달된 필드만 반영)
        """
        update_data = obj_in.model_dump(exclude_unset=True)
        old_data = {key: getattr(db_obj, key) for key in update_data}
        for key, value in update_data.items():
            setattr(db_obj, key, value)

        db.add(db_obj)
        if changed_by is not None and update_data:
            record_audit(db, table_name=self.model.__tablename__, record_id=db_obj.id,
                         operation="UPDATE", old_data=old_data, new_data=update_data, changed_by=changed_by)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def delete(self, db: AsyncSession, *, id: Any, changed_by: Optional[int] = None) -> Optional[ModelType]:
        """
        ID를 기준으로 레코드를 삭제합니다.
        소프트 삭제 모델은 deleted_at만 기록하고, 그 외에는 실제로 삭제합니다.
        """
        db_obj = await self.get(db, id)
        if not db_obj:
            return None

        if changed_by is not None:
            record_audit(db, table_name=self.model.__tablename__, record_id=db_obj.id,
                         operation="DELETE", old_data=db_obj, changed_by=changed_by)
        if self.soft_delete:
            db_obj.deleted_at = datetime.now(UTC)
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
        else:
            await db.delete(db_obj)
            await db.commit()
        return db_obj

    async def restore(self, db: AsyncSession, *, id: Any, changed_by: Optional[int] = None) -> Optional[ModelType]:
        """
        소프트 삭제된 레코드를 복원합니다.
        """
        db_obj = await self.get(db, id, include_deleted=True)
        if not db_obj or not self.soft_delete:
            return None

        db_obj.deleted_at = None
        db.add(db_obj)
        if changed_by is not None:
            record_audit(db, table_name=self.model.__tablename__, record_id=db_obj.id,
                         operation="UPDATE", new_data={"deleted_at": None}, changed_by=changed_by,
                         reason="restore")
        await db.commit()
        await db.refresh(db_obj)
        return db_obj
