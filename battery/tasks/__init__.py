from battery.tasks.inspection_time import InspectionTimeTask
from battery.tasks.digit_span import DigitSpanTask
from battery.tasks.flanker import FlankerTask

__all__ = ["InspectionTimeTask", "DigitSpanTask", "FlankerTask"]
