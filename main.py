# main.py
import json
import logging
import os

import fire
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from config import load_config
from dashboard import build_dashboard, run_dev_dashboard
from output.html import render_page
from smart.client import FHIRClient
from smart.errors import LaunchError, UntrustedIssuer
from smart.launch import LaunchStore, begin_launch

# Configure logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

config = load_config()
launch_store = LaunchStore(ttl=config.smart.state_ttl, max_states=config.smart.max_states)

# Initialize FastAPI app
app = FastAPI(title="LabTrend Dashboard")


@app.get("/health")
def health():
    return {"status": "ok", "lab": config.lab.coding}


@app.get("/launch")
def launch(iss: str = "", launch: str = ""):
    """SMART launch endpoint: EHR launch with ?iss=&launch=, standalone with ?iss= only"""
    try:
        url = begin_launch(iss, launch or None, config, launch_store)
    except UntrustedIssuer as e:
        return PlainTextResponse(f"Launch error: {e}", status_code=403)
    except LaunchError as e:
        logger.error(f"Launch failed for {iss!r}: {e}")
        return PlainTextResponse(f"Launch error: {e}", status_code=400 if not iss else 502)
    return RedirectResponse(url, status_code=302)


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Dashboard page, also the SMART redirect URI"""
    view = await build_dashboard(dict(request.query_params), config, launch_store, client_factory=FHIRClient)
    return HTMLResponse(render_page(view, config))


def serve(host: str = "0.0.0.0", port: int = None):
    port = port or int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host=host, port=port)


def summary(patient_id: str = None, server_url: str = None, config_path: str = None):
    """Run the dashboard in dev mode and print what it would render"""
    cfg = load_config(config_path) if config_path else config
    view = run_dev_dashboard(cfg, server_url=server_url, patient_id=patient_id)
    print(json.dumps(view.to_dict(), indent=2))


# CLI entrypoint using python-fire
def cli():
    fire.Fire({
        "serve": serve,
        "summary": summary,
    })


# Entry point for CLI or server
if __name__ == "__main__":
    cli()
