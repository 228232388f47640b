from sqlalchemy import Column, Date, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base


class DailyCallCountModel(Base):
    __tablename__ = "user_daily_calls"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "call_date",
            name="uq_user_daily_calls_user_date",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    call_date = Column(Date, nullable=False)
    call_count = Column(Integer, nullable=False, default=0)

    user = relationship("UserModel", back_populates="daily_calls")
