from enum import Enum


class ApplicantType(str, Enum):
    NATURAL = "natural"
    LEGAL = "legal"


class MarkType(str, Enum):
    WORD = "word"
    FIGURATIVE = "figurative"
    COMBINED = "combined"
    THREE_DIMENSIONAL = "3d"
    COLOR = "color"
    SOUND = "sound"
    POSITION = "position"
    PATTERN = "pattern"
    MOTION = "motion"
    MULTIMEDIA = "multimedia"
    HOLOGRAM = "hologram"
    THREAD = "thread"
    OTHER = "other"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "UEBERWEISUNG"
    SEPA_DIRECT_DEBIT = "SEPASDD"


class SepaMandateType(str, Enum):
    PERMANENT = "permanent"
    SINGLE = "single"


class PriorityType(str, Enum):
    FOREIGN = "foreign"
    EXHIBITION = "exhibition"


class WorkflowStatus(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    SESSION_ESTABLISHED = "SESSION_ESTABLISHED"
    STAGE_1 = "STAGE_1"
    STAGE_2 = "STAGE_2"
    STAGE_3 = "STAGE_3"
    STAGE_4 = "STAGE_4"
    STAGE_5 = "STAGE_5"
    STAGE_6 = "STAGE_6"
    STAGE_7 = "STAGE_7"
    STAGE_8 = "STAGE_8"
    CONFIRMED = "CONFIRMED"
    DOCUMENTS_RETRIEVED = "DOCUMENTS_RETRIEVED"
    FAILED = "FAILED"

    @classmethod
    def for_stage(cls, number: int) -> "WorkflowStatus":
        return cls(f"STAGE_{number}")
