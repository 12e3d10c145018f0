"""
time_active.py

활성 시간대(TimeActive) 모델.

그룹/권한에 연결되어 해당 레코드가 유효한 기간을 나타낸다.
start_time ~ end_time 범위 밖이면 권한 계산에서 제외된다.
schedule_* 컬럼은 요일/일자 단위 반복 일정을 기록한다.

"""

from datetime import datetime

from sqlalchemy import DateTime, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TimeActive(Base):
    __tablename__ = "time_actives"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)

    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    schedule_day_of_week: Mapped[str | None] = mapped_column(String(50), nullable=True)
    schedule_day_of_month: Mapped[str | None] = mapped_column(String(100), nullable=True)
    schedule_day: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
