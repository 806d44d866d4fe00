from __future__ import annotations

import enum
import uuid
from sqlalchemy import Column, DateTime, Index, String, Text, func
from app.core.database import Base
from app.models.ad import EnumValueType, AdFormat, AdResult, Angle, ElementResult


class LearningType(str, enum.Enum):
    INSIGHT = "insight"
    RULE = "rule"
    WARNING = "warning"


class Learning(Base):
    """
    Insight distilled from a completed ad's diagnosis.

    Append-only: rows are never updated. ``ad_id`` is a plain column rather than
    a foreign key, so a learning outlives the ad it came from.
    """
    __tablename__ = "learnings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    content = Column(Text, nullable=False)
    type = Column(EnumValueType(LearningType), nullable=False, default=LearningType.INSIGHT)

    ad_id = Column(String, nullable=True, index=True)
    angle = Column(EnumValueType(Angle), nullable=True)
    format = Column(EnumValueType(AdFormat), nullable=True)
    result = Column(EnumValueType(AdResult), nullable=True)

    hook_result = Column(EnumValueType(ElementResult), nullable=True)
    hook_note = Column(Text, nullable=True)
    avatar_result = Column(EnumValueType(ElementResult), nullable=True)
    avatar_note = Column(Text, nullable=True)
    script_result = Column(EnumValueType(ElementResult), nullable=True)
    script_note = Column(Text, nullable=True)
    cta_result = Column(EnumValueType(ElementResult), nullable=True)
    cta_note = Column(Text, nullable=True)
    visual_result = Column(EnumValueType(ElementResult), nullable=True)
    visual_note = Column(Text, nullable=True)
    audio_result = Column(EnumValueType(ElementResult), nullable=True)
    audio_note = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index('ix_learnings_angle_format', 'angle', 'format'),
    )
