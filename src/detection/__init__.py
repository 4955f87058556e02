from .state_machine import DetectionStateMachine

__all__ = ["DetectionStateMachine"]
