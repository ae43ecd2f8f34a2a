from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import asdict
from typing import Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from dispatch import Clock, Dispatcher, DispatchTiming, RealTimeClock, Simulation

logger = logging.getLogger(__name__)


class FloorRequest(BaseModel):
    floor: int


class LandingCall(BaseModel):
    floor: int
    # left as a plain string: unknown directions are dropped, not rejected
    direction: str


class SimulationManager:
    def __init__(
        self,
        num_floors: int = 10,
        initial_floor: int = 0,
        tick_interval: float = 0.25,
        seconds_per_unit: float = 1.0,
        door_dwell_ticks: int = 2,
        timing: Optional[DispatchTiming] = None,
        clock: Optional[Clock] = None,
        autorun: bool = True,
    ) -> None:
        dispatcher = Dispatcher(
            num_floors,
            initial_floor,
            clock=clock if clock is not None else RealTimeClock(seconds_per_unit),
            timing=timing,
        )
        self.simulation = Simulation(dispatcher, door_dwell_ticks=door_dwell_ticks)
        self.tick_interval = tick_interval
        self.autorun = autorun
        self.clients: Set[WebSocket] = set()
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def dispatcher(self) -> Dispatcher:
        return self.simulation.dispatcher

    async def start(self) -> None:
        if self.autorun and self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _run(self) -> None:
        while True:
            async with self._lock:
                await self.simulation.step()
                payload = self.current_state()
            await self.broadcast(payload)
            await asyncio.sleep(self.tick_interval)

    async def broadcast(self, payload: dict) -> None:
        message = json.dumps(payload)
        disconnected: Set[WebSocket] = set()
        for client in set(self.clients):
            try:
                await client.send_text(message)
            except WebSocketDisconnect:
                disconnected.add(client)
            except Exception:
                logger.warning("Dropping stream client after failed send", exc_info=True)
                disconnected.add(client)
        for client in disconnected:
            await self.unregister(client)

    async def register(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        logger.info("Stream client connected (%d total)", len(self.clients))
        await websocket.send_text(json.dumps(self.current_state()))

    async def unregister(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.remove(websocket)
            logger.info("Stream client disconnected (%d left)", len(self.clients))
        with contextlib.suppress(Exception):
            await websocket.close()

    def current_state(self) -> dict:
        metrics = asdict(self.simulation.metrics_snapshot())
        return {
            "tick": self.simulation.current_tick,
            "time": self.simulation.clock.now,
            "cabin": self.dispatcher.snapshot(),
            "metrics": metrics,
        }

    async def submit_request(self, floor: int) -> dict:
        async with self._lock:
            accepted = self.simulation.submit_request(floor)
            state = self.current_state()
        state["accepted"] = accepted
        await self.broadcast(state)
        return state

    async def submit_call(self, floor: int, direction: str) -> dict:
        async with self._lock:
            accepted = self.simulation.submit_call(floor, direction)
            state = self.current_state()
        state["accepted"] = accepted
        await self.broadcast(state)
        return state

    async def advance(self) -> dict:
        async with self._lock:
            await self.simulation.advance()
            state = self.current_state()
        await self.broadcast(state)
        return state

    async def step(self) -> dict:
        async with self._lock:
            await self.simulation.step()
            state = self.current_state()
        await self.broadcast(state)
        return state

    async def open_doors(self) -> dict:
        async with self._lock:
            await self.simulation.open_doors()
            state = self.current_state()
        await self.broadcast(state)
        return state

    async def close_doors(self) -> dict:
        async with self._lock:
            await self.simulation.close_doors()
            state = self.current_state()
        await self.broadcast(state)
        return state


def create_app(manager: Optional[SimulationManager] = None) -> FastAPI:
    manager = manager or SimulationManager()
    app = FastAPI(title="Cabin Dispatch Simulation API")
    app.state.manager = manager
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        await manager.start()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await manager.stop()

    @app.get("/state")
    async def get_state() -> dict:
        return manager.current_state()

    @app.post("/requests")
    async def submit_request(request: FloorRequest) -> dict:
        return await manager.submit_request(request.floor)

    @app.post("/calls")
    async def submit_call(call: LandingCall) -> dict:
        return await manager.submit_call(call.floor, call.direction)

    @app.post("/advance")
    async def advance() -> dict:
        return await manager.advance()

    @app.post("/step")
    async def step() -> dict:
        return await manager.step()

    @app.post("/doors/open")
    async def open_doors() -> dict:
        return await manager.open_doors()

    @app.post("/doors/close")
    async def close_doors() -> dict:
        return await manager.close_doors()

    @app.websocket("/ws/stream")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await manager.register(websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            await manager.unregister(websocket)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    uvicorn.run("server.app:app", host="0.0.0.0", port=8000, reload=False)
