from enum import StrEnum


class OutputType(StrEnum):
    DIO = "DIO"
    PWM = "PWM"


class Direction(StrEnum):
    INPUT = "Input"
    OUTPUT = "Output"


class InitState(StrEnum):
    IDLE = "Idle"
    ACTIVE = "Active"


class InitStrategy(StrEnum):
    ANY_RESET = "AnyReset"
    PWR_ON_RESET = "PwrOnReset"


class OutProtectStrategy(StrEnum):
    NONE = ""
    SWITCH_OFF = "SwitchOff"
    CURRENT_LIMIT = "CurrentLimit"
    NO_PROTECT = "NoProtect"


class PwmPeriod(StrEnum):
    VARIABLE = "variable"
    FIXED = "fixed"


class PwmPolarity(StrEnum):
    NORMAL = "normal"
    INVERTED = "inverted"


class PwmOverload(StrEnum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class PwmDiagnostics(StrEnum):
    FULL = "full"
    BASIC = "basic"
    NONE = "none"
