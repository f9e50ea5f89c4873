"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from riskflow.api import risk_workflow
from riskflow.core.config import settings
from riskflow.core.exceptions import RiskWorkflowError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="GRC Risk Workflow", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RiskWorkflowError)
async def risk_workflow_error_handler(request: Request, exc: RiskWorkflowError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Routes
app.include_router(risk_workflow.router, prefix="/risks/workflow", tags=["risk-workflow"])


@app.get("/")
def read_root():
    return {"message": "GRC Risk Workflow API"}
