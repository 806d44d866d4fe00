from app.models.ad import (
    Ad,
    AdTag,
    AdStatus,
    Angle,
    AdFormat,
    FunnelStage,
    SourceType,
    AdResult,
    AdAction,
    ElementResult,
    TagKind,
    FailReason,
    SuccessFactor,
    ELEMENTS,
)
from app.models.learning import Learning, LearningType

__all__ = [
    "Ad",
    "AdTag",
    "AdStatus",
    "Angle",
    "AdFormat",
    "FunnelStage",
    "SourceType",
    "AdResult",
    "AdAction",
    "ElementResult",
    "TagKind",
    "FailReason",
    "SuccessFactor",
    "ELEMENTS",
    "Learning",
    "LearningType",
]
