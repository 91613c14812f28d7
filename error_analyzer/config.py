"""
Configuration
=============
Loads environment variables from a .env file using python-dotenv.

Environment Variables:
    DEFAULT_REPO          - GitHub repository analysed when a request names none
    GITHUB_TOKEN          - Optional token sent to the GitHub API (raises rate limits)
    GITHUB_API_URL        - GitHub REST API base (default: https://api.github.com)
    GITHUB_RAW_URL        - Raw content base (default: https://raw.githubusercontent.com)
    HTTP_TIMEOUT_SECONDS  - Timeout for GitHub and ServiceNow calls (default: 30)
    ANTHROPIC_API_KEY     - Enables the optional Claude analysis
    CLAUDE_MODEL          - Claude model name
    CLAUDE_MAX_TOKENS     - Max tokens for Claude responses (default: 2048)
    USE_AI                - Set to "false" to force rule-based analysis
    SNOW_INSTANCE         - ServiceNow instance host, e.g. dev12345.service-now.com
    SNOW_USERNAME         - ServiceNow user
    SNOW_PASSWORD         - ServiceNow password
    SNOW_API_VERSION      - ServiceNow API version (default: v1)
    SNOW_DEFAULT_GROUP    - Assignment group used when a request names none
    REPORT_OUTPUT_DIR     - Directory for locally saved reports (default: reports)
    API_HOST / API_PORT   - Bind address for the HTTP API
    LOG_LEVEL             - Root log level (default: INFO)

ServiceNow is considered configured only when instance, username and
password are all present; otherwise incident requests save the report
locally.
"""
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_REPO = os.getenv("DEFAULT_REPO", "https://github.com/gauravadeshmukh/agentforcedemo/tree/master")
DEFAULT_BRANCH = "master"

GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_RAW_URL = os.getenv("GITHUB_RAW_URL", "https://raw.githubusercontent.com")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 30))

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-haiku-4-5-20251001")
CLAUDE_MAX_TOKENS = int(os.getenv("CLAUDE_MAX_TOKENS", 2048))
USE_AI = os.getenv("USE_AI", "true").lower() != "false"

SNOW_INSTANCE = os.getenv("SNOW_INSTANCE")
SNOW_USERNAME = os.getenv("SNOW_USERNAME")
SNOW_PASSWORD = os.getenv("SNOW_PASSWORD")
SNOW_API_VERSION = os.getenv("SNOW_API_VERSION", "v1")
SNOW_DEFAULT_GROUP = os.getenv("SNOW_DEFAULT_GROUP", "")

REPORT_OUTPUT_DIR = os.getenv("REPORT_OUTPUT_DIR", "reports")

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def servicenow_configured() -> bool:
    """True when all ServiceNow credentials are present."""
    return bool(SNOW_INSTANCE and SNOW_USERNAME and SNOW_PASSWORD)
