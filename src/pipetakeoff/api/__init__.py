"""HTTP routers exposed by the takeoff API."""

from pipetakeoff.api.analysis import router as analysis_router
from pipetakeoff.api.export import router as export_router
from pipetakeoff.api.upload import router as upload_router

__all__ = ["analysis_router", "export_router", "upload_router"]
