#!/usr/bin/env python3

"""
pnlview web server
"""
# pylint: disable=invalid-name

import logging
from io import StringIO
from datetime import date
from typing import Optional
import uvicorn
from fastapi import FastAPI, HTTPException
from pnlview.main import activity_report, composition_report, drilldown_report
from pnlview.datamodels import DashboardResponse, InputModel, Snapshot
from pnlview.util import GroupTypeEnum, PnlviewException
from pnlview import __version__

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger()

app = FastAPI()


class CompositionRequest(InputModel):
    snapshot: Snapshot
    group: GroupTypeEnum = GroupTypeEnum.CURRENCY
    show_holdings: bool = True
    drilldown: Optional[str] = None


class ActivityRequest(InputModel):
    snapshot: Snapshot
    from_date: Optional[date] = None


def capture_logs_start() -> logging.StreamHandler:
    log_stream = StringIO()
    log_handler = logging.StreamHandler(log_stream)
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    log_handler.setFormatter(formatter)
    logger.addHandler(log_handler)
    return log_handler


def capture_logs_stop(log_handler) -> str:
    logger.removeHandler(log_handler)
    log_handler.flush()
    return log_handler.stream.getvalue()


@app.get("/")
async def index():
    return {"name": "pnlview", "version": __version__}


@app.post("/composition", response_model=DashboardResponse)
def composition(request: CompositionRequest):
    """Composition chart, optionally with the holdings of one group"""
    log_handler = capture_logs_start()
    try:
        comp = composition_report(request.snapshot, request.group, request.show_holdings)
        holdings = None
        if request.drilldown is not None:
            holdings = drilldown_report(
                request.snapshot, comp, request.group, request.drilldown
            )
    except PnlviewException as e:
        capture_logs_stop(log_handler)
        logger.error(e)
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        capture_logs_stop(log_handler)
        logger.exception(e)
        raise HTTPException(status_code=500, detail=str(e)) from e

    return DashboardResponse(
        composition=comp,
        holdings=holdings,
        log=capture_logs_stop(log_handler),
        version=__version__,
    )


@app.post("/activity", response_model=DashboardResponse)
def activity(request: ActivityRequest):
    """Bought and sold securities since from_date"""
    log_handler = capture_logs_start()
    try:
        act = activity_report(request.snapshot, request.from_date)
    except PnlviewException as e:
        capture_logs_stop(log_handler)
        logger.error(e)
        raise HTTPException(status_code=422, detail=str(e)) from e
    except Exception as e:
        capture_logs_stop(log_handler)
        logger.exception(e)
        raise HTTPException(status_code=500, detail=str(e)) from e

    return DashboardResponse(
        activity=act, log=capture_logs_stop(log_handler), version=__version__
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
