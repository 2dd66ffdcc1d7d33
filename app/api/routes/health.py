from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    service = getattr(request.app.state, "metrics_service", None)
    markets = [p.key for p in service.config_engine.markets] if service else []
    return {
        "status": "ready" if service else "not_ready",
        "markets": markets,
    }
