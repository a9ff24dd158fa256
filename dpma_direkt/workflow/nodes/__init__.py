from . import finalization, result_builder, session_init, stage_runner

__all__ = [
    "finalization",
    "result_builder",
    "session_init",
    "stage_runner",
]
