"""
Cognify Configuration System
============================

This file contains ALL configuration for the Cognify practice studio.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these to customize Cognify's behavior
# =============================================================================

# REQUIRED: Set your Google Cloud project (or a Gemini API key for live audio)
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON
GEMINI_API_KEY = None  # Optional: used by the live channel instead of Vertex

# Interview settings
DEFAULT_MODE = "Quick"
QUESTION_TIME_BUDGET = 180  # seconds, display only
WORKDIR = "./_cognify"

# Voice settings
ENABLE_VOICE = False
LIVE_VOICE_NAME = "Zephyr"
VOICE_FALLBACK_TO_TEXT = True  # Microphone denied -> continue in text mode

# Logging
LOG_FILE = "./_cognify/cognify.log"
LOG_LEVEL = "INFO"


# =============================================================================
# CATALOGUES
# =============================================================================

@dataclass(frozen=True)
class InterviewModeConfig:
    """One selectable interview mode."""
    id: str
    label: str
    description: str
    count: int


INTERVIEW_MODES = [
    InterviewModeConfig("Quick", "Quick Blitz", "5 rapid-fire questions for daily practice.", 5),
    InterviewModeConfig("Full", "Full Mock", "20 questions simulating a real-world interview.", 20),
    InterviewModeConfig("Technical", "Deep Technical", "Focus on DSA, Architecture, and Language internals.", 10),
    InterviewModeConfig("Behavioral", "Soft Skills (STAR)", "Leadership, conflict, and situational scenarios.", 8),
    InterviewModeConfig("System Design", "System Design", "High-level architecture and scalability.", 5),
    InterviewModeConfig("Mixed", "Mixed Mode", "A balance of technical and behavioral questions.", 12),
]

DOMAINS = [
    "Software Engineering",
    "Data Science & AI",
    "Product Management",
    "Design & UX",
    "HR & Operations",
    "Finance & Fintech",
    "Marketing & Growth",
    "Sales & Business Development",
    "Legal & Compliance",
    "Healthcare & Medicine",
    "Education & EdTech",
    "Real Estate & Construction",
    "Customer Support & Success",
    "Security & Defense",
    "Aviation & Aerospace",
    "Media & Entertainment",
    "Manufacturing & Logistics",
    "Hospitality & Tourism",
    "Energy & Sustainability",
]

SKILL_LEVELS = ["Junior", "Mid-Level", "Senior", "Lead", "Executive"]

THEMES = {
    "exclusive-light": "Exclusive Light",
    "pro-dark": "Professional Dark",
}
DEFAULT_THEME = "exclusive-light"


def get_mode(mode_id: str) -> InterviewModeConfig:
    """Look up an interview mode, falling back to Quick for unknown ids."""
    for mode in INTERVIEW_MODES:
        if mode.id == mode_id:
            return mode
    return INTERVIEW_MODES[0]


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Audio capture (outbound to the live model)
SAMPLE_RATE_IN = 16000
SAMPLE_RATE_CAPTURE = 48000  # Device rate when 16 kHz is not supported
CAPTURE_BLOCK_SIZE = 4096
SPEAKING_THRESHOLD = 0.02
FRAME_QUEUE_SIZE = 32

# Audio playback (inbound from the live model)
SAMPLE_RATE_OUT = 24000
PLAYBACK_QUEUE_SIZE = 256
OUTPUT_BUFFER_FRAMES = 1024

# Voice answer placeholder when nothing was transcribed
EMPTY_VOICE_ANSWER = "[Audio Recorded]"

# LLM
VERTEX_LOCATION = "us-central1"
QUESTION_MODEL = "gemini-3-pro-preview"
EVALUATION_MODEL = "gemini-3-pro-preview"
HINT_MODEL = "gemini-2.5-flash-lite"
COACH_MODEL = "gemini-3-pro-preview"
LIVE_MODEL = "gemini-2.5-flash-native-audio-preview-12-2025"
QUESTION_THINKING_BUDGET = 8192
EVALUATION_THINKING_BUDGET = 8192
ATS_THINKING_BUDGET = 16384
JOBS_THINKING_BUDGET = 4096
COACH_THINKING_BUDGET = 4096
LLM_TIMEOUT = 120
MAX_OUTPUT_TOKENS = 8192

# Persistence file names inside WORKDIR
SESSIONS_FILE = "sessions.json"
PROFILE_FILE = "profile.json"
THEME_FILE = "theme.json"
USER_FILE = "auth_user.json"
REGISTERED_USERS_FILE = "users.json"
LAST_IDENTIFIER_FILE = "last_identifier.json"


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    gemini_api_key: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    default_mode: str = DEFAULT_MODE
    question_time_budget: int = QUESTION_TIME_BUDGET
    workdir: str = WORKDIR
    enable_voice: bool = ENABLE_VOICE
    live_model: str = LIVE_MODEL
    live_voice_name: str = LIVE_VOICE_NAME
    voice_fallback_to_text: bool = VOICE_FALLBACK_TO_TEXT
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL


def get_config() -> Config:
    """Load configuration, letting environment variables override file settings."""
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
    api_key = os.getenv("GEMINI_API_KEY") or GEMINI_API_KEY

    if project == "your-project-id":
        project = None
    if not project:
        raise ValueError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")

    workdir = os.getenv("COGNIFY_WORKDIR") or WORKDIR
    log_file = LOG_FILE if workdir == WORKDIR else os.path.join(workdir, "cognify.log")

    return Config(
        google_cloud_project=project,
        google_application_credentials=credentials,
        gemini_api_key=api_key,
        workdir=workdir,
        log_file=log_file,
        log_level=os.getenv("COGNIFY_LOG_LEVEL") or LOG_LEVEL,
    )
