# docintake/services/inbox_service.py
import asyncio
import json
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from docintake.commons.logger import logger
from docintake.commons.types import PathsCfg
from docintake.helpers.file_transport import FileWatcher
from docintake.services.import_service import ImportService
from docintake.services.scan_service import ScanService, to_scan_payload


def generate_result_filename(source: str, mode: str = "scan", extension: str = "json") -> str:
    """
    Nombre del JSON de salida, con timestamp para orden natural.
    Ej:
    - 20250821-170605-123456_scan_lab_batch_07.json
    - 20250821-170605-123456_form_intake_form.json
    """
    if not isinstance(source, str):
        raise TypeError(f"Invalid type for source: expected str, got {type(source).__name__}")

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
    base_name = Path(source).stem
    safe_base = re.sub(r"[^a-zA-Z0-9_\-]", "_", base_name) or "document"
    return f"{ts}_{mode}_{safe_base}.{extension}"


def as_patterns(patterns: Union[str, Sequence[str]]) -> List[str]:
    """Acepta un glob suelto o una lista de globs (settings.yaml admite ambos)."""
    if isinstance(patterns, str):
        return [patterns]
    return list(patterns)


class InboxService:
    """Procesa una carpeta de entrada: backlog primero, luego watchdog.

    Cada documento produce un JSON en archive/ (o error/ si falló) y el
    original se mueve a archive/source/ o a error/.
    """

    def __init__(
        self,
        paths: PathsCfg,
        mode: str = "scan",
        scan_service: Optional[ScanService] = None,
        import_service: Optional[ImportService] = None,
    ):
        if mode not in ("scan", "form"):
            raise ValueError(f"Unknown inbox mode: {mode}")
        self.paths = paths
        self.mode = mode
        self.scan_service = scan_service or ScanService()
        self.import_service = import_service or ImportService()
        self._in_flight: Set[str] = set()
        Path(paths.archive).mkdir(parents=True, exist_ok=True)
        Path(paths.error).mkdir(parents=True, exist_ok=True)

    async def _run_pipeline(self, filename: str, payload: bytes) -> Tuple[bool, Dict[str, Any]]:
        if self.mode == "scan":
            result = await self.scan_service.process(filename, payload)
            return result.success, to_scan_payload(result)
        imported = self.import_service.import_file(filename, payload)
        return imported.success, imported.to_payload()

    def _move_source(self, src: str, dst_dir: Path):
        if src and Path(src).exists():
            dst_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(src, dst_dir / Path(src).name)

    async def _process_document(self, payload: bytes, src: str) -> Optional[Path]:
        # watchdog puede disparar created y modified para el mismo archivo:
        # uno en curso o uno ya archivado (el original se movió) no se repite
        if src in self._in_flight:
            return None
        if src and not Path(src).exists():
            logger.debug(f"{src} ya fue procesado; evento duplicado ignorado")
            return None
        self._in_flight.add(src)
        try:
            return await self._handle(payload, src)
        finally:
            self._in_flight.discard(src)

    async def _handle(self, payload: bytes, src: str) -> Optional[Path]:
        name = Path(src).name
        try:
            ok, data = await self._run_pipeline(name, payload)
        except Exception as ex:
            logger.exception(f"Error procesando {name}: {ex}")
            ok, data = False, {"success": False, "error": f"Unknown processing error: {ex}"}

        out_dir = Path(self.paths.archive if ok else self.paths.error)
        out_json = out_dir / generate_result_filename(src, mode=self.mode)
        try:
            out_json.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            if ok:
                self._move_source(src, Path(self.paths.archive) / "source")
                logger.info(f"Documento procesado y archivado: {out_json}")
            else:
                self._move_source(src, Path(self.paths.error))
                logger.error(f"Documento {name} falló: {data.get('error')}. Movido a {self.paths.error}")
        except OSError as ex:
            logger.exception(f"No se pudo archivar {name}: {ex}")
            return None
        return out_json

    async def process_backlog(self, patterns: Union[str, Sequence[str]]) -> List[Path]:
        inbox = Path(self.paths.inbox)
        inbox.mkdir(parents=True, exist_ok=True)
        files = sorted({f for pat in as_patterns(patterns) for f in inbox.glob(pat) if f.is_file()})
        if not files:
            return []
        logger.info(f"Backlog detectado: {len(files)} archivo(s) en {inbox}")
        outputs: List[Path] = []
        for f in files:
            try:
                payload = f.read_bytes()
            except OSError as e:
                logger.warning(f"No se pudo leer {f}: {e}; reintento breve...")
                await asyncio.sleep(0.1)
                try:
                    payload = f.read_bytes()
                except OSError as ex:
                    logger.error(f"Se omite {f}: {ex}")
                    continue
            out = await self._process_document(payload, str(f))
            if out is not None:
                outputs.append(out)
        return outputs

    async def run_watch(self, patterns: Union[str, Sequence[str]], stop_event: Optional[asyncio.Event] = None):
        loop = asyncio.get_running_loop()
        patterns = as_patterns(patterns)

        # 1) Procesar backlog existente
        await self.process_backlog(patterns)

        # 2) Arrancar watcher para nuevos archivos
        watcher = FileWatcher(self.paths.inbox, patterns, self._process_document, loop)
        watcher.start()
        logger.info(f"Escuchando carpeta de entrada {self.paths.inbox} {patterns} (modo {self.mode})...")
        try:
            await (stop_event or asyncio.Event()).wait()
        finally:
            watcher.stop()
