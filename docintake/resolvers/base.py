import asyncio
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Protocol

from docintake.commons.logger import logger
from docintake.parsers.models import AutomationStatus, ClientMatch

# Problemas blandos de identidad: nunca vuelven success=False
IdentityIssue = Literal["missing_identity", "identity_not_found", "lookup_failed"]


class ClientResolver(Protocol):
    """Capacidad externa: código de cliente o email -> a lo sumo un cliente."""

    async def resolve(self, identity: str) -> Optional[ClientMatch]: ...


class NullResolver:
    async def resolve(self, identity: str) -> Optional[ClientMatch]:
        return None


@dataclass
class Resolution:
    match: Optional[ClientMatch]
    automation_status: AutomationStatus
    issue: Optional[IdentityIssue] = None
    warnings: List[str] = field(default_factory=list)


async def resolve_identity(
    resolver: Optional[ClientResolver],
    identity: Optional[str],
    timeout: float = 5.0,
    missing_warning: str = "No Client ID found",
) -> Resolution:
    """Resuelve la identidad con espera acotada.

    - sin candidato            -> failed + warning
    - no encontrado / error / timeout -> manual + warning
    - encontrado               -> automated
    """
    if not identity:
        return Resolution(None, "failed", "missing_identity", [missing_warning])

    try:
        match = await asyncio.wait_for((resolver or NullResolver()).resolve(identity), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Resolver sin respuesta en {timeout}s para '{identity}'")
        return Resolution(
            None, "manual", "lookup_failed",
            [f'Client lookup failed for "{identity}": timed out after {timeout}s'],
        )
    except Exception as ex:
        logger.warning(f"Resolver falló para '{identity}': {ex}")
        return Resolution(None, "manual", "lookup_failed", [f'Client lookup failed for "{identity}": {ex}'])

    if match is None:
        return Resolution(
            None, "manual", "identity_not_found", [f'Client ID "{identity}" not found in database']
        )
    return Resolution(match, "automated")
