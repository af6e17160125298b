from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from app.db.base import Base


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        UniqueConstraint(
            "object_type",
            "object_id",
            "rule_code",
            "due_on",
            "remind_on",
            name="uq_reminders_object_rule_due_remind",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    rule_code = Column(String(100), nullable=False)
    object_type = Column(String(20), nullable=False)
    object_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    due_on = Column(Date, nullable=False)
    remind_on = Column(Date, nullable=False, index=True)
    severity = Column(String(10), nullable=False)
    status = Column(String(10), nullable=False, default="pending", index=True)
    context = Column(JSON, nullable=False, default=dict)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    last_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
