import asyncio
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer


def read_settled(path: Path, attempts: int = 10, delay: float = 0.05) -> Optional[bytes]:
    """Lee el archivo cuando su tamaño deja de cambiar; None si ya no existe."""
    last = -1
    for _ in range(attempts):
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return None
        if size == last and size > 0:
            break
        last = size
        time.sleep(delay)
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


class InboxEventHandler(PatternMatchingEventHandler):
    """Traduce eventos de watchdog a rutas de documentos listos para procesar."""

    def __init__(self, patterns: Sequence[str], on_path: Callable[[Path], None]):
        super().__init__(patterns=list(patterns), ignore_directories=True, case_sensitive=False)
        self.on_path = on_path

    def on_created(self, event: FileSystemEvent):
        self.on_path(Path(event.src_path))

    # un archivo copiado en varias escrituras llega como created + modified
    def on_modified(self, event: FileSystemEvent):
        self.on_path(Path(event.src_path))

    def on_moved(self, event: FileSystemEvent):
        self.on_path(Path(event.dest_path))


class FileWatcher:
    """Observa la carpeta de entrada y entrega (bytes, ruta) al handler async del loop principal.

    Los callbacks de watchdog corren en su propio hilo; el trabajo se agenda en
    el loop con run_coroutine_threadsafe.
    """

    def __init__(
        self,
        inbox: str,
        patterns: Sequence[str],
        on_document_async,
        loop: asyncio.AbstractEventLoop,
        settle_delay: float = 0.05,
    ):
        self.inbox = Path(inbox)
        self.inbox.mkdir(parents=True, exist_ok=True)
        self.loop = loop
        self.on_document_async = on_document_async
        self.settle_delay = settle_delay
        self.handler = InboxEventHandler(patterns, self._submit)
        self.observer = Observer()

    def _submit(self, path: Path):
        payload = read_settled(path, delay=self.settle_delay)
        if payload is None:
            # se movió o borró antes de poder leerlo
            return
        asyncio.run_coroutine_threadsafe(self.on_document_async(payload, str(path)), self.loop)

    def start(self):
        self.observer.schedule(self.handler, str(self.inbox), recursive=False)
        self.observer.start()

    def stop(self):
        self.observer.stop()
        self.observer.join()
