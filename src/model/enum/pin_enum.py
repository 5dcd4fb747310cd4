from enum import StrEnum


class PinSide(StrEnum):
    LEFT = "left"
    RIGHT = "right"


class PinCategory(StrEnum):
    GROUND = "ground"
    COMMUNICATION = "communication"
    CONFIGURABLE = "configurable"
    POWER = "power"
    INPUT = "input"
    OUTPUT = "output"
    FAULT = "fault"


class PinCapability(StrEnum):
    """Digits used in a pin's capability mask"""

    SENT = "1"
    ANALOG = "2"
    DIGITAL = "3"
    OUTPUT = "4"
