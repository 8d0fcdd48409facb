from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config.logging_config import get_logger, setup_logging
from .config.settings import Settings, get_settings
from .exceptions import InvalidCellIdError
from .models.cell_model import CellView
from .models.spreadsheet_model import Spreadsheet

logger = get_logger(__name__)


class EditCellRequest(BaseModel):
    raw_text: str = Field(default="", description="Text exactly as typed into the cell")


def create_app(settings: Optional[Settings] = None,
               spreadsheet: Optional[Spreadsheet] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION,
                  description="Reactive spreadsheet recalculation engine",
                  docs_url="/api/docs", redoc_url="/api/redoc")
    app.add_middleware(CORSMiddleware, **settings.get_cors_config())

    engine_config = settings.get_engine_config()
    max_formula_length = engine_config["max_formula_length"]

    app.state.settings = settings
    if spreadsheet is None:
        spreadsheet = Spreadsheet.with_history_limit(engine_config["max_history_size"])
    app.state.spreadsheet = spreadsheet

    def _sheet(request: Request) -> Spreadsheet:
        return request.app.state.spreadsheet

    def _view(sheet: Spreadsheet, cell_id: str) -> CellView:
        try:
            return sheet.get_cell_view(cell_id)
        except InvalidCellIdError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "version": settings.APP_VERSION}

    @app.get("/api/sheet")
    def get_sheet(request: Request) -> Dict[str, Any]:
        return _sheet(request).to_dict()

    @app.get("/api/cells/{cell_id}")
    def get_cell(cell_id: str, request: Request) -> Dict[str, Any]:
        return _view(_sheet(request), cell_id).model_dump()

    @app.put("/api/cells/{cell_id}")
    def edit_cell(cell_id: str, body: EditCellRequest, request: Request) -> Dict[str, Any]:
        if len(body.raw_text) > max_formula_length:
            raise HTTPException(
                status_code=413,
                detail=f"Cell text longer than {max_formula_length} characters")

        sheet = _sheet(request)
        try:
            sheet.edit_cell(cell_id, body.raw_text)
        except InvalidCellIdError as e:
            logger.warning("Rejected edit", cell=cell_id, error=str(e))
            raise HTTPException(status_code=400, detail=str(e))
        return sheet.to_dict()

    @app.post("/api/history/undo")
    def undo(request: Request) -> Dict[str, Any]:
        sheet = _sheet(request)
        applied = sheet.undo() is not None
        return {"applied": applied, **sheet.to_dict()}

    @app.post("/api/history/redo")
    def redo(request: Request) -> Dict[str, Any]:
        sheet = _sheet(request)
        applied = sheet.redo() is not None
        return {"applied": applied, **sheet.to_dict()}

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("sheetcalc.main:app", host=settings.HOST, port=settings.PORT,
                log_level=settings.LOG_LEVEL.lower(), access_log=settings.DEBUG)
