import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import RingConfig
from .errors import EmptyRing, PositionCollision
from .logging_setup import setup_logging

log = logging.getLogger("ring_api")


class AddServerReq(BaseModel):
    server_id: str
    replicas: Optional[int] = None


def create_app(cfg: RingConfig) -> FastAPI:
    setup_logging(cfg.debug)
    app = FastAPI(title="Consistent Hash Ring")
    ring = cfg.build_ring()
    app.state.ring = ring

    @app.on_event("startup")
    async def _startup():
        log.info("Ring ready: modulus=%d replicas=%d servers=%s", ring.modulus, ring.replicas_per_server, sorted(ring.servers()))

    @app.get("/health")
    def health():
        return {"ok": True, "servers": len(ring.servers()), "nodes": len(ring)}

    @app.get("/ring/state")
    def state():
        return {
            "modulus": ring.modulus,
            "replicas": ring.replicas_per_server,
            "servers": sorted(ring.servers()),
            "nodes": [{"position": n.position, "server_id": n.server_id} for n in ring.nodes()],
        }

    @app.get("/ring/lookup")
    def lookup(key: str):
        try:
            server = ring.lookup(key)
        except EmptyRing as e:
            raise HTTPException(status_code=503, detail={"error": "empty_ring", "message": str(e)})
        return {"key": key, "position": ring.position_for(key), "server_id": server}

    @app.get("/ring/replicas")
    def replicas(key: str, r: int = 1):
        try:
            servers = ring.replicas(key, r)
        except EmptyRing as e:
            raise HTTPException(status_code=503, detail={"error": "empty_ring", "message": str(e)})
        return {"key": key, "position": ring.position_for(key), "replicas": servers}

    @app.post("/ring/servers")
    def add_server(req: AddServerReq):
        try:
            placed = ring.add_server(req.server_id, req.replicas)
        except ValueError as e:
            raise HTTPException(status_code=422, detail={"error": "invalid_replicas", "message": str(e)})
        except PositionCollision as e:
            raise HTTPException(
                status_code=409,
                detail={"error": "position_collision", "message": str(e), "requested": e.requested, "placed": e.placed},
            )
        return {"ok": True, "server_id": req.server_id, "positions": sorted(placed)}

    @app.delete("/ring/servers/{server_id}")
    def remove_server(server_id: str):
        removed = ring.remove_server(server_id)
        return {"ok": True, "server_id": server_id, "removed": sorted(removed)}

    return app
