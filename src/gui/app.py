"""
Quart application serving the current snapshot.
Reads never wait on a refresh: every request renders whatever the store holds.
"""
import asyncio
import logging
import os
import time
from typing import Optional

from quart import Quart, jsonify, render_template

from core.entities import EMPTY_SNAPSHOT, Snapshot
from services.config import Config
from workflows.pipeline_factory import Runtime, build_runtime

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')
STATIC_DIR = os.path.join(os.path.dirname(__file__), 'static')


def create_app(
    config: Config,
    runtime: Optional[Runtime] = None,
    initial_snapshot: Snapshot = EMPTY_SNAPSHOT,
) -> Quart:
    """
    Build the web app. `runtime` is injectable for tests; by default it is
    built from `config` when the server starts, seeded with `initial_snapshot`.
    """
    app = Quart(__name__, template_folder=TEMPLATE_DIR, static_folder=STATIC_DIR)
    app.config["HN_CONFIG"] = config
    state = {"runtime": runtime, "task": None}

    def _runtime() -> Runtime:
        return state["runtime"]

    # ==================== Lifecycle ====================

    @app.before_serving
    async def startup():
        """Populate the first snapshot, then refresh in the background."""
        if state["runtime"] is None:
            state["runtime"] = build_runtime(config, initial=initial_snapshot)
        rt = _runtime()

        # A failure here aborts startup: there would be nothing to serve
        if rt.store.current().is_initial:
            await rt.refresher.refresh_once(initial=True)
        state["task"] = asyncio.create_task(rt.refresher.run(include_initial=False))
        logger.info(f"Serving snapshot v{rt.store.version}")

    @app.after_serving
    async def shutdown():
        rt = _runtime()
        if rt is None:
            return
        rt.refresher.stop()
        task = state["task"]
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await rt.aclose()
        logger.info("Refresher shut down")

    # ==================== Routes ====================

    @app.route('/')
    async def index():
        """Ranked snapshot page."""
        start = time.perf_counter()
        snapshot = _runtime().store.current()
        body = await render_template(
            'layout.html',
            page_title=config.server.page_title,
            items=snapshot.items,
            version=snapshot.version,
        )
        logger.debug(f"Rendered snapshot v{snapshot.version} in {time.perf_counter() - start:.4f}s")
        return body

    @app.route('/api/snapshot')
    async def api_snapshot():
        return jsonify(_runtime().store.current().to_dict())

    @app.route('/healthz')
    async def healthz():
        rt = _runtime()
        snapshot = rt.store.current()
        age = time.time() - snapshot.generated_at if snapshot.generated_at else None
        return jsonify({
            "state": rt.refresher.state.value,
            "version": snapshot.version,
            "items": len(snapshot),
            "age_seconds": age,
            "runs": rt.refresher.runs,
            "failures": rt.refresher.failures,
        })

    return app
