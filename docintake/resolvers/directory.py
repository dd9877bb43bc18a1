import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from docintake.commons.logger import logger
from docintake.parsers.models import ClientMatch


class DirectoryResolver:
    """Resolver sobre un directorio de clientes en memoria (cargado de YAML/JSON).

    Coincidencia exacta por client_code o por email del perfil; si hay más de
    un candidato se considera ambiguo y no se devuelve nada.
    """

    def __init__(self, clients: Iterable[Dict[str, Any]]):
        self._clients: List[ClientMatch] = [
            ClientMatch(
                client_id=None if c.get("client_id") is None else str(c["client_id"]),
                client_code=str(c.get("client_code") or ""),
                first_name=c.get("first_name") or "",
                last_name=c.get("last_name") or "",
                email=c.get("email") or "",
            )
            for c in clients
        ]

    @classmethod
    def from_file(cls, path: str) -> "DirectoryResolver":
        p = Path(path)
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f) if p.suffix.lower() == ".json" else yaml.safe_load(f)
        if isinstance(data, dict):
            data = data.get("clients", [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of clients in {p}")
        logger.info(f"Directorio de clientes cargado: {len(data)} registro(s) desde {p}")
        return cls(c for c in data if isinstance(c, dict))

    def __len__(self) -> int:
        return len(self._clients)

    async def resolve(self, identity: str) -> Optional[ClientMatch]:
        needle = (identity or "").strip()
        if not needle:
            return None
        hits = [c for c in self._clients if c.client_code == needle or (c.email and c.email == needle)]
        if len(hits) > 1:
            logger.warning(f"Identidad ambigua '{needle}': {len(hits)} clientes coinciden")
            return None
        return hits[0] if hits else None
