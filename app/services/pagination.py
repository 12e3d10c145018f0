"""
services/pagination.py

목록 조회 공통 페이지네이션.

- page < 1 이면 1 로 보정
- page_size < 1 또는 > 100 이면 10 으로 보정
- 응답은 {"data": [...], "meta": {...}} 형태

"""

import math
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_page(page: int | None, page_size: int | None) -> tuple[int, int]:
    page = page if page and page >= 1 else 1
    if not page_size or page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


@dataclass
class Page:
    items: list
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0

    def meta(self) -> dict:
        return {
            "current_page": self.page,
            "page_size": self.page_size,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "has_next_page": self.page < self.total_pages,
            "has_previous_page": self.page > 1,
        }

    def envelope(self, serialize) -> dict:
        return {"data": [serialize(item) for item in self.items], "meta": self.meta()}


def paginate(db: Session, stmt: Select, page: int | None, page_size: int | None) -> Page:
    page, page_size = normalize_page(page, page_size)
    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = db.execute(stmt.offset((page - 1) * page_size).limit(page_size))
    # select(Model) 은 엔티티 그대로, select(Model, 집계값) 은 Row 로 반환
    # (selected_columns 는 엔티티의 모든 컬럼을 나열하므로 column_descriptions 로 판단)
    if len(stmt.column_descriptions) == 1:
        items = list(rows.scalars().all())
    else:
        items = list(rows.all())
    return Page(items=items, page=page, page_size=page_size, total_count=total)
