"""FastAPI application for error analysis and incident creation."""

import logging
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from error_analyzer.config import (
    API_HOST,
    API_PORT,
    ANTHROPIC_API_KEY,
    CLAUDE_MODEL,
    DEFAULT_REPO,
    LOG_LEVEL,
    REPORT_OUTPUT_DIR,
    SNOW_DEFAULT_GROUP,
    SNOW_INSTANCE,
    USE_AI,
    servicenow_configured,
)
from error_analyzer.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    IncidentRequest,
    IncidentResponse,
    IncidentResult,
)
from error_analyzer.pipeline.analyzer import MalformedInputError, analyze_error
from error_analyzer.reporting.report_formatter import save_report
from error_analyzer.ticketing.servicenow_client import ServiceNowClient, ServiceNowError
from error_analyzer.utils.logging_config import setup_logging

# Load environment variables
load_dotenv()
setup_logging(LOG_LEVEL)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Create FastAPI app
app = FastAPI(
    title="Error Analyzer API",
    description="Parses error messages, locates the faulty code in a GitHub repository and recommends fixes",
    version=API_VERSION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ENDPOINTS = [
    {"method": "GET", "path": "/health", "description": "Health check"},
    {"method": "GET", "path": "/status", "description": "API status and configuration"},
    {"method": "POST", "path": "/analyze", "description": "Analyze error without creating incident"},
    {"method": "POST", "path": "/incident/create", "description": "Create incident with error analysis"},
]


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Error Analyzer API",
        "version": API_VERSION,
        "endpoints": {
            "analyze": "POST /analyze - Analyze an error message against a repository",
            "incident": "POST /incident/create - Analyze and file a ServiceNow incident (or save locally)"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "ai": {"enabled": bool(ANTHROPIC_API_KEY) and USE_AI, "model": CLAUDE_MODEL},
        "servicenow": {"configured": servicenow_configured()},
        "default_repository": DEFAULT_REPO
    }


@app.get("/status")
async def status():
    """Configuration and available endpoints."""
    configured = servicenow_configured()
    return {
        "api": {"version": API_VERSION, "host": API_HOST, "port": API_PORT},
        "servicenow": {
            "configured": configured,
            "instance": SNOW_INSTANCE if configured else None,
            "mode": "ServiceNow" if configured else "Local only"
        },
        "repository": {"default": DEFAULT_REPO},
        "endpoints": ENDPOINTS
    }


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest):
    """Analyze an error message.

    Args:
        request: Error message and optional repository URL

    Returns:
        Analysis response with the diagnostic report

    Raises:
        HTTPException: 400 for malformed input, 500 if analysis fails
    """
    try:
        report = await analyze_error(request.error_message, request.repository)
        return AnalyzeResponse(message="Error analysis completed", report=report)

    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Analysis failed")
        raise HTTPException(
            status_code=500,
            detail=f"Analysis failed: {str(e)}"
        )


@app.post("/incident/create", response_model=IncidentResponse)
async def create_incident(request: IncidentRequest):
    """Analyze an error and file the result.

    Creates a ServiceNow incident when ServiceNow is configured and the
    request is not local-only; otherwise saves the report locally.

    Raises:
        HTTPException: 400 for malformed input, 502 if ServiceNow rejects
            the request, 500 for other failures
    """
    try:
        report = await analyze_error(request.error_message, request.repository)

        if request.local_only or not servicenow_configured():
            path = save_report(report, REPORT_OUTPUT_DIR)
            result = IncidentResult(
                mode="local",
                report_file=path.name,
                report_path=str(path),
                priority=report.classification.priority if report.classification else None,
                error_type=report.fault.error_type,
                language=report.fault.language
            )
            return IncidentResponse(message="Analysis report saved locally", incident=result)

        additional_fields = {}
        if request.caller:
            additional_fields["caller_id"] = request.caller
        assignment_group = request.assignment_group or SNOW_DEFAULT_GROUP
        if assignment_group:
            additional_fields["assignment_group"] = assignment_group

        async with ServiceNowClient() as client:
            result = await client.create_incident_with_report(report, additional_fields)
        return IncidentResponse(message=f"Incident {result.incident_number} created", incident=result)

    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ServiceNowError as e:
        logger.error("ServiceNow incident creation failed: %s", e)
        raise HTTPException(status_code=502, detail=f"ServiceNow incident creation failed: {str(e)}")
    except Exception as e:
        logger.exception("Incident creation failed")
        raise HTTPException(
            status_code=500,
            detail=f"Incident creation failed: {str(e)}"
        )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_HOST, port=API_PORT)
