"""Configuration constants for the stepgen pipeline."""

import os

# ---------------------------------------------------------------------------
# Backend defaults
# ---------------------------------------------------------------------------

DEFAULT_MODEL = "gpt-4"
DEFAULT_TEMPERATURE = 0.1
TOP_P = 1.0
API_KEY_ENV_VAR = "OPENAI_API_KEY"


# ---------------------------------------------------------------------------
# Project layout
# ---------------------------------------------------------------------------

DEFAULT_PROJECT_PATH = "example"
MEMORY_DIR = "memory"
WORKSPACE_DIR = "workspace"
LOGS_DIR = "logs"
RUN_LOG_FILE = "run.log"

PREPROMPTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "preprompts")

PREPROMPT_NAMES = (
    "generate",
    "philosophy",
    "qa",
    "spec",
    "respec",
    "unit_tests",
    "use_qa",
    "use_feedback",
    "fix_code",
)


# ---------------------------------------------------------------------------
# Well-known store keys
# ---------------------------------------------------------------------------

PROMPT_KEY = "prompt"
LEGACY_PROMPT_KEY = "main_prompt"
FEEDBACK_KEY = "feedback"
SPECIFICATION_KEY = "specification"
UNIT_TESTS_KEY = "unit_tests"
ALL_OUTPUT_KEY = "all_output.txt"
README_KEY = "README.md"
ENTRYPOINT_KEY = "run.sh"
