"""
SpeakWell Configuration System
==============================

This file contains ALL configuration for the SpeakWell practice system.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize SpeakWell's behavior
# =============================================================================

# Chat service. Either point CHAT_ENDPOINT_URL at a relay that owns the
# interviewer prompt, or leave it empty and set GOOGLE_CLOUD_PROJECT to talk
# to Vertex AI's OpenAI-compatible endpoint directly.
CHAT_ENDPOINT_URL = ""
CHAT_API_KEY = None
CHAT_MODEL = None  # Setting a model switches the client to direct mode
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON
VERTEX_LOCATION = "us-central1"
VERTEX_MODEL_NAME = "google/gemini-2.0-flash-001"
REQUEST_TIMEOUT = 60

# Storage
WORKDIR = "./_speakwell"
SESSIONS_FILE = "./_speakwell/practice_sessions.json"

# Speech settings
ENABLE_TTS = False
TTS_VOICE = "en-US-Neural2-F"
LANGUAGE_CODE = "en-US"
TTS_SPEAKING_RATE = 0.95

# Interview
DEFAULT_CATEGORY = "mixed"

# Logging
LOG_FILE = "./_speakwell/speakwell.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

MIN_TRANSCRIPT_CHARS = 10
GOOGLE_CLOUD_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
VERTEX_OPENAI_URL_TEMPLATE = (
    "https://{location}-aiplatform.googleapis.com/v1beta1/projects/{project}"
    "/locations/{location}/endpoints/openapi/chat/completions"
)
RECENT_SESSIONS_COUNT = 10
PROGRESS_DAYS = 7


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    chat_endpoint_url: str = CHAT_ENDPOINT_URL
    chat_api_key: Optional[str] = CHAT_API_KEY
    chat_model: Optional[str] = CHAT_MODEL
    google_cloud_project: Optional[str] = GOOGLE_CLOUD_PROJECT
    google_application_credentials: Optional[str] = GOOGLE_APPLICATION_CREDENTIALS
    vertex_location: str = VERTEX_LOCATION
    request_timeout: int = REQUEST_TIMEOUT
    workdir: str = WORKDIR
    sessions_file: str = SESSIONS_FILE
    enable_tts: bool = ENABLE_TTS
    tts_voice: str = TTS_VOICE
    language_code: str = LANGUAGE_CODE
    tts_speaking_rate: float = TTS_SPEAKING_RATE
    default_category: str = DEFAULT_CATEGORY
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def uses_vertex(self) -> bool:
        """True when requests go straight to Vertex AI with Google credentials."""
        return not self.chat_endpoint_url and bool(self.google_cloud_project)

    @property
    def chat_url(self) -> Optional[str]:
        """Resolve the chat endpoint URL."""
        if self.chat_endpoint_url:
            return self.chat_endpoint_url
        if self.google_cloud_project:
            return VERTEX_OPENAI_URL_TEMPLATE.format(
                location=self.vertex_location, project=self.google_cloud_project
            )
        return None

    @property
    def resolved_chat_model(self) -> Optional[str]:
        """Model name for direct mode; Vertex always needs one."""
        if self.chat_model:
            return self.chat_model
        if self.uses_vertex:
            return VERTEX_MODEL_NAME
        return None


def get_config(require_chat: bool = False) -> Config:
    """Load configuration, letting environment variables override the constants."""
    config = Config(
        chat_endpoint_url=os.getenv("SPEAKWELL_CHAT_URL") or CHAT_ENDPOINT_URL,
        chat_api_key=os.getenv("SPEAKWELL_API_KEY") or CHAT_API_KEY,
        chat_model=os.getenv("SPEAKWELL_CHAT_MODEL") or CHAT_MODEL,
        google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT,
        google_application_credentials=(
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
        ),
        workdir=os.getenv("SPEAKWELL_WORKDIR") or WORKDIR,
        log_level=os.getenv("SPEAKWELL_LOG_LEVEL") or LOG_LEVEL,
    )

    if config.workdir != WORKDIR:
        config.sessions_file = os.path.join(config.workdir, os.path.basename(SESSIONS_FILE))
        config.log_file = os.path.join(config.workdir, os.path.basename(LOG_FILE))

    if require_chat and config.chat_url is None:
        raise ValueError(
            "Please set SPEAKWELL_CHAT_URL or GOOGLE_CLOUD_PROJECT in config.py or as environment variable"
        )

    return config
