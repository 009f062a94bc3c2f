from __future__ import annotations

import logging
import random

from fastapi import FastAPI, HTTPException

from common.config import MockASRSettings
from common.schemas import (
    FetchOperationResponse,
    LongRunningRecognizeRequest,
    LongRunningRecognizeResponse,
)
from mock_asr_service.store import MockOperationStore

logger = logging.getLogger(__name__)


def create_app(settings: MockASRSettings | None = None) -> FastAPI:
    settings = settings or MockASRSettings()
    app = FastAPI(title="Mock ASR Service")
    store = MockOperationStore(processing_delay_s=settings.processing_delay_s)
    app.state.store = store

    @app.get("/health")
    async def health():
        return {"status": "ok", "operations": store.count}

    @app.post("/v1/speech:longrunningrecognize", response_model=LongRunningRecognizeResponse)
    async def longrunningrecognize(req: LongRunningRecognizeRequest):
        if settings.error_rate and random.random() < settings.error_rate:
            logger.info("Injecting submission failure")
            raise HTTPException(status_code=503, detail="Service temporarily unavailable")
        if not req.signal:
            raise HTTPException(status_code=400, detail="Empty signal")
        op = await store.create(req.language_code, req.execute_beam_search, len(req.signal))
        return LongRunningRecognizeResponse(operation_id=op.id)

    @app.get("/v1/operations/{operation_id}", response_model=FetchOperationResponse)
    async def fetch_operation(operation_id: int):
        op = store.get(operation_id)
        if op is None:
            raise HTTPException(status_code=404, detail=f"Operation {operation_id} not found")
        return store.status(op)

    return app


settings = MockASRSettings()
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
