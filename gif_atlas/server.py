"""
GIF Atlas - FastAPI Web Server
Builds frame atlases for uploaded or remote GIFs and reports playback state.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import replace

from fastapi import Depends, FastAPI, File, Form, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .animation_driver import AnimationDriver
from .atlas_builder import AtlasResult, atlas_to_png_bytes, build_atlas
from .config import AtlasConfig, config_from_env, parse_fps
from .errors import DecodeError, FetchError
from .fetch import fetch_bytes, is_url
from .registry import FetchFn, GifInstanceRegistry
from .sources import StaticSourceList

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the registry for the lifetime of the server, so each URL is decoded once."""
    app.state.config = config_from_env()
    app.state.registry = GifInstanceRegistry(app.state.config)
    yield
    app.state.registry.discard_all()


app = FastAPI(title="GIF Atlas", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Frame-Count", "X-Frame-Width", "X-Frame-Height", "X-Tile-Scale", "X-Fps"],
)


def get_config(request: Request) -> AtlasConfig:
    return request.app.state.config


def get_registry(request: Request) -> GifInstanceRegistry:
    return request.app.state.registry


def get_fetch(config: AtlasConfig = Depends(get_config)) -> FetchFn:
    timeout = config.fetch_timeout

    async def fetch(url: str) -> bytes:
        return await fetch_bytes(url, timeout=timeout)

    return fetch


def atlas_response(atlas_png: bytes, frame_count: int, frame_width: int, frame_height: int, fps: int) -> Response:
    return Response(
        content=atlas_png,
        media_type="image/png",
        headers={
            "X-Frame-Count": str(frame_count),
            "X-Frame-Width": str(frame_width),
            "X-Frame-Height": str(frame_height),
            "X-Tile-Scale": f"{1.0 / frame_count:.6f}",
            "X-Fps": str(fps),
        },
    )


def result_response(result: AtlasResult, fps: int) -> Response:
    return atlas_response(
        atlas_to_png_bytes(result), result.frame_count, result.frame_width, result.frame_height, fps
    )


def driver_response(driver: AnimationDriver) -> Response:
    result = AtlasResult(
        atlas=driver.atlas,
        frame_width=driver.atlas.width // driver.frame_count,
        frame_height=driver.atlas.height,
        frame_count=driver.frame_count,
    )
    return result_response(result, driver.frames_per_second)


def describe_driver(driver: AnimationDriver) -> dict:
    return {
        "source": driver.source_id,
        "frameCount": driver.frame_count,
        "fps": driver.frames_per_second,
        "state": driver.state.value,
        "tileScale": driver.tile_scale,
        "targets": len(driver.targets),
    }


@app.get("/api/health")
def health_check():
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/api/sources")
def list_sources(offset: int = 0, config: AtlasConfig = Depends(get_config)):
    """List the configured GIF URLs starting at `offset`."""
    if offset < 0:
        return JSONResponse(status_code=400, content={"error": "offset must be non-negative"})
    sources = StaticSourceList(config.source_urls)
    urls = sources.get_source_ids(offset)
    return {"results": urls, "total": len(sources)}


@app.get("/api/drivers")
def list_drivers(registry: GifInstanceRegistry = Depends(get_registry)):
    """Describe every animation driver created so far."""
    drivers = [describe_driver(registry.get_driver(source_id)) for source_id in registry]
    return {"results": drivers, "total": len(drivers)}


@app.post("/api/atlas")
async def build_atlas_endpoint(
    file: UploadFile = File(...),
    fps: str = Form(""),
    config: AtlasConfig = Depends(get_config),
):
    """Build an atlas from an uploaded GIF."""
    try:
        if fps:
            config = replace(config, frames_per_second=parse_fps(fps))
        data = await file.read()
        result = build_atlas(data, config)
        playback_fps = result.source_fps if config.use_source_timing else config.frames_per_second
        return result_response(result, playback_fps)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Error building atlas")
        return JSONResponse(status_code=500, content={"error": f"Failed to build atlas: {str(e)}"})


@app.get("/api/atlas")
async def atlas_from_url(
    url: str = Query(...),
    registry: GifInstanceRegistry = Depends(get_registry),
    fetch: FetchFn = Depends(get_fetch),
):
    """Fetch a GIF by URL and return its atlas, reusing the driver built for an earlier request."""
    if not is_url(url):
        return JSONResponse(status_code=400, content={"error": "url must be an http(s) URL"})

    try:
        driver = registry.get_driver(url)
        if driver is None:
            data = await fetch(url)
            driver = registry.get_or_create_driver(url, lambda: registry.build_driver(url, data))
        return driver_response(driver)
    except FetchError as e:
        logger.warning("Fetch failed for %s: %s", url, e)
        return JSONResponse(status_code=502, content={"error": str(e)})
    except DecodeError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Error building atlas for %s", url)
        return JSONResponse(status_code=500, content={"error": f"Failed to build atlas: {str(e)}"})


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
