from typing import Any

from dpma_direkt.core.config import Settings
from dpma_direkt.protocol.recorder import DebugRecorder
from dpma_direkt.protocol.session import Session
from dpma_direkt.protocol.transport import HttpTransport
from dpma_direkt.services.finalization import VersandClient
from dpma_direkt.stages.base import StageContext


class RunContext:
    """Everything one registration run owns. Built per run and dropped afterwards."""

    def __init__(
        self,
        settings: Settings,
        transport: HttpTransport,
        run_id: str,
        finalizer: Any | None = None,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self.run_id = run_id
        self.session = Session(settings)
        self.recorder = DebugRecorder(settings, run_id)
        self.stages = StageContext(self.session, transport, settings, self.recorder)
        self.finalizer = finalizer or VersandClient(transport, settings)
