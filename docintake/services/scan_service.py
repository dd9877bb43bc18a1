# docintake/services/scan_service.py
import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from docintake.commons.dispatcher import FormatDispatcher, scan_dispatcher
from docintake.commons.errors import ExtractionError
from docintake.commons.logger import logger
from docintake.parsers.models import Document, ExtractionResult, ParsedDocument
from docintake.parsers.object_graph import DEFAULT_MAX_DEPTH, parse_object
from docintake.parsers.structured import parse_grid
from docintake.parsers.unstructured import parse_text
from docintake.resolvers.base import ClientResolver, resolve_identity
from docintake.services.quality import DEFAULT_THRESHOLD, quality_score, quality_warnings


def to_scan_payload(result: ExtractionResult) -> Dict[str, Any]:
    """Forma que consumen la UI y la persistencia."""
    if not result.success:
        return {"success": False, "error": result.error}

    data: Dict[str, Any] = {
        "path_ids": [
            {
                "path_id": f.key,
                "value": f.value.raw,
                "description": f.description,
                "unit": f.unit,
                "status": f.status,
            }
            for f in result.fields
        ],
        "automation_status": result.automation_status,
        "quality_score": result.quality_score,
        "warnings": list(result.warnings),
    }
    if result.identity is not None:
        data["client_id"] = result.identity.client_id
        data["client_info"] = {
            "client_code": result.identity.client_code,
            "first_name": result.identity.first_name,
            "last_name": result.identity.last_name,
            "email": result.identity.email,
        }
    if result.raw_structure is not None:
        data["raw_structure"] = result.raw_structure
    return {"success": True, "data": data}


class ScanService:
    """Pipeline de resultados: despacho -> parseo -> identidad -> puntaje.

    Cada documento es independiente; no hay estado mutable compartido.
    """

    def __init__(
        self,
        resolver: Optional[ClientResolver] = None,
        resolver_timeout: float = 5.0,
        low_quality_threshold: int = DEFAULT_THRESHOLD,
        max_depth: int = DEFAULT_MAX_DEPTH,
        dispatcher: FormatDispatcher = scan_dispatcher,
    ):
        self.resolver = resolver
        self.resolver_timeout = resolver_timeout
        self.low_quality_threshold = low_quality_threshold
        self.max_depth = max_depth
        self.dispatcher = dispatcher

    def parse(self, document: Document) -> ParsedDocument:
        decoded = self.dispatcher.decode(document)
        if decoded.route == "structured":
            return parse_grid(decoded.content, kind=decoded.kind)
        if decoded.route == "unstructured":
            return parse_text(decoded.content)
        return parse_object(decoded.content, max_depth=self.max_depth)

    async def _finish(self, parsed: ParsedDocument) -> ExtractionResult:
        resolution = await resolve_identity(
            self.resolver,
            parsed.identity,
            timeout=self.resolver_timeout,
            missing_warning=parsed.missing_identity_warning,
        )
        structured_rows = parsed.total_rows if parsed.source == "structured" else 0
        score = quality_score(parsed.fields, resolution.match is not None, structured_rows)
        warnings = [
            *resolution.warnings,
            *parsed.warnings,
            *quality_warnings(score, self.low_quality_threshold),
        ]
        return ExtractionResult(
            success=True,
            fields=parsed.fields,
            identity=resolution.match,
            identity_candidate=parsed.identity,
            automation_status=resolution.automation_status,
            quality_score=score,
            warnings=warnings,
            raw_structure=parsed.raw_structure,
        )

    async def process(self, filename: str, payload: bytes) -> ExtractionResult:
        """Punto de entrada: nunca lanza, los errores vuelven como success=False."""
        document = Document(filename=filename, payload=payload)
        try:
            parsed = self.parse(document)
            result = await self._finish(parsed)
        except ExtractionError as ex:
            logger.warning(f"{filename}: {ex}")
            return ExtractionResult.failure(str(ex))
        except Exception as ex:
            logger.exception(f"Error inesperado procesando {filename}: {ex}")
            return ExtractionResult.failure(f"Unknown processing error: {ex}")

        logger.info(
            f"{filename}: {len(result.fields)} campo(s), "
            f"estado={result.automation_status}, puntaje={result.quality_score}"
        )
        return result

    async def process_path(self, path: str) -> ExtractionResult:
        p = Path(path)
        try:
            payload = p.read_bytes()
        except OSError as ex:
            logger.error(f"No se pudo leer {p}: {ex}")
            return ExtractionResult.failure(f"Could not read file {p.name}: {ex}")
        return await self.process(p.name, payload)

    async def process_many(self, documents: Iterable[Tuple[str, bytes]]) -> List[ExtractionResult]:
        """Procesa varios documentos en paralelo; uno malo no afecta al resto."""
        return list(await asyncio.gather(*(self.process(name, payload) for name, payload in documents)))
