from .capture import ReceiveCapture
from .clock import EdgeGenerator
from .latch import InputLatch
from .select import SelectController
from .shifter import TransmitShifter
from .tracker import BusyTracker

__all__ = [
    "BusyTracker",
    "EdgeGenerator",
    "InputLatch",
    "ReceiveCapture",
    "SelectController",
    "TransmitShifter",
]
