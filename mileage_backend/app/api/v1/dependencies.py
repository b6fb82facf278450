"""
Dependencies for the v1 API.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.db.session import get_session_factory
from mileage_backend.app.domain.mileage.diagnostics import DiagnosticSink, LoggingDiagnosticSink
from mileage_backend.app.domain.mileage.mileage_service import MileageService


def get_mileage_config() -> MileageConfig:
    return MileageConfig.from_settings()


def get_diagnostic_sink() -> DiagnosticSink:
    return LoggingDiagnosticSink()


async def get_mileage_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    config: MileageConfig = Depends(get_mileage_config),
    sink: DiagnosticSink = Depends(get_diagnostic_sink)
) -> MileageService:
    """Build a MileageService bound to the request's collaborators."""
    return MileageService(session_factory, config=config, sink=sink)
