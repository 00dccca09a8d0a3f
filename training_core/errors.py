from __future__ import annotations


class TrainingError(Exception):
    """Base class for rejections raised by the training engine."""


class InvalidTransition(TrainingError):
    def __init__(self, operation: str, phase: str):
        super().__init__(f"{operation} not allowed in phase {phase}")
        self.operation = operation
        self.phase = phase


class MalformedAnswer(TrainingError):
    def __init__(self, item_id: str, reason: str):
        super().__init__(f"answer for {item_id} rejected: {reason}")
        self.item_id = item_id
        self.reason = reason


class UnknownScenario(TrainingError, LookupError):
    pass
