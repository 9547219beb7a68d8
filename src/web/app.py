"""
Quart application exposing the plugin icon.
The sync engine, when given, runs for the lifetime of the server.
"""
import logging
import os
from typing import Optional

import aiofiles
from quart import Quart, Response, jsonify

from services.scheduler import SyncEngine

logger = logging.getLogger(__name__)

ICON_NAME = "rss.png"


def create_app(assets_dir: str = "assets", engine: Optional[SyncEngine] = None) -> Quart:
    app = Quart(__name__)
    app.config["ASSETS_DIR"] = assets_dir

    @app.route('/images/rss.png')
    async def rss_icon():
        path = os.path.join(app.config["ASSETS_DIR"], ICON_NAME)
        try:
            async with aiofiles.open(path, 'rb') as f:
                data = await f.read()
        except OSError as e:
            logger.info(f"/images/rss.png err = {e}")
            return Response("404 Something went wrong - Not Found", status=404, mimetype="text/plain")
        return Response(data, mimetype="image/png")

    @app.errorhandler(404)
    async def not_found(error):
        return jsonify({"error": "not found"}), 404

    if engine is not None:
        @app.before_serving
        async def start_engine():
            engine.start()

        @app.after_serving
        async def stop_engine():
            await engine.stop()

    return app
