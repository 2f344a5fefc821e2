"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so metadata dicts, log lines and
rendered templates work unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class ContextType(StrEnum):
    """Category of a collected fragment."""

    # Code
    CODE_STRUCTURE = "code_structure"
    CODE_IMPLEMENTATION = "code_implementation"
    CODE_DEPENDENCIES = "code_dependencies"
    CODE_COMMENTS = "code_comments"

    # Project
    PROJECT_STRUCTURE = "project_structure"
    PROJECT_CONFIGURATION = "project_configuration"
    PROJECT_DOCUMENTATION = "project_documentation"

    # Runtime
    RUNTIME_STATE = "runtime_state"
    RUNTIME_LOGS = "runtime_logs"
    RUNTIME_ERRORS = "runtime_errors"

    # Version control
    VCS_HISTORY = "vcs_history"
    VCS_DIFF = "vcs_diff"
    VCS_BRANCHES = "vcs_branches"

    # Environment
    ENVIRONMENT_VARIABLES = "environment_variables"
    ENVIRONMENT_SYSTEM = "environment_system"

    # Task
    TASK_DESCRIPTION = "task_description"
    TASK_HISTORY = "task_history"
    TASK_CONSTRAINTS = "task_constraints"

    # Domain knowledge
    DOMAIN_PATTERNS = "domain_patterns"
    DOMAIN_BEST_PRACTICES = "domain_best_practices"
    DOMAIN_EXAMPLES = "domain_examples"

    # External resources
    EXTERNAL_API = "external_api"
    EXTERNAL_LIBRARY = "external_library"
    EXTERNAL_WEB = "external_web"

    @property
    def heading(self) -> str:
        """Heading form: ``code_structure`` → ``Code Structure``."""
        return " ".join(word.capitalize() for word in self.value.split("_"))


class TaskType(StrEnum):
    """Kind of task the assembled context is for."""

    CODE_GENERATION = "code_generation"
    CODE_COMPLETION = "code_completion"
    CODE_REFACTORING = "code_refactoring"
    CODE_REVIEW = "code_review"
    BUG_DETECTION = "bug_detection"
    PERFORMANCE_ANALYSIS = "performance_analysis"
    SECURITY_ANALYSIS = "security_analysis"
    DOCUMENTATION = "documentation"
    EXPLANATION = "explanation"
    TEST_GENERATION = "test_generation"
    TEST_DEBUGGING = "test_debugging"
    BUG_FIXING = "bug_fixing"
    ERROR_DIAGNOSIS = "error_diagnosis"
    DESIGN = "design"
    ARCHITECTURE_REVIEW = "architecture_review"
    GENERAL = "general"
    QUESTION_ANSWERING = "question_answering"

    @property
    def is_code_task(self) -> bool:
        return self.value.startswith("code_")


class ContextScope(StrEnum):
    """How far a source may reach, narrowest first."""

    MINIMAL = "minimal"
    LOCAL = "local"
    MODULE = "module"
    PROJECT = "project"
    EXTENDED = "extended"
    GLOBAL = "global"

    def at_least(self, other: ContextScope) -> bool:
        """True when this scope is as wide as ``other`` or wider."""
        members = list(ContextScope)
        return members.index(self) >= members.index(other)


class SourceKind(StrEnum):
    """What a source reads: fixed artifacts, live state, the network, or a mix."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    EXTERNAL = "external"
    HYBRID = "hybrid"


class AssemblyState(StrEnum):
    """Per-request engine state."""

    RECEIVED = "received"
    COLLECTING = "collecting"
    BOUNDING = "bounding"
    FILTERING = "filtering"
    PRIORITIZING = "prioritizing"
    FORMATTING = "formatting"
    DONE = "done"
    FAILED = "failed"


class CollectionStatus(StrEnum):
    """Outcome of running one source."""

    COLLECTED = "collected"
    EMPTY = "empty"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class PackageStatus(StrEnum):
    """Value of the ``status`` key in package metadata."""

    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


class DependencyResolution(StrEnum):
    """How the prioritizer treats inter-fragment dependencies."""

    SINGLE_PASS = "single_pass"
    TOPOLOGICAL = "topological"


# ── Scoring ──────────────────────────────────────────────


class ScoreWeight:
    """Fixed weights of the priority score formula."""

    RELEVANCE = 0.4
    PREFERRED_TYPE = 0.3
    FOCUS_MATCH = 0.2
    RECENCY = 0.1


RECENCY_DECAY_MINUTES = 60.0

# ── Budgets ──────────────────────────────────────────────

DEFAULT_TOKEN_BUDGET = 10_000
MIN_FRAGMENT_COST = 1  # every selected fragment costs at least this much

# ── Sources ──────────────────────────────────────────────

DEFAULT_SOURCE_PRIORITY = 50
DEFAULT_SOURCE_COST = 100
DEFAULT_SOURCE_VERSION = "1.0.0"

# ── Memory Estimation ────────────────────────────────────

BYTES_PER_CHAR = 2
BYTES_PER_METADATA_ENTRY = 100
BYTES_PER_ASPECT = 50
BYTES_PER_FRAGMENT_OVERHEAD = 200

DEFAULT_MAX_FRAGMENTS = 1000
DEFAULT_MAX_MEMORY_BYTES = 50 * 1024 * 1024

# ── File-Reading Sources ─────────────────────────────────

# Extension → language name; only languages with an installed grammar
EXTENSION_MAP: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
}

# Language name → import path for tree-sitter grammars
GRAMMAR_MODULES: dict[str, str] = {
    "python": "tree_sitter_python",
}

SKIP_DIRS: frozenset[str] = frozenset({
    "node_modules",
    "__pycache__",
    "venv",
    ".venv",
    "dist",
    "build",
    "target",
})

# ── Misc ─────────────────────────────────────────────────

GIT_LOG_TIMEOUT = 10
GIT_LOG_MAX_COMMITS = 20
ERROR_TRUNCATION_CHARS = 200
METRIC_PRECISION = 1  # decimal places for reported ratios

# ── Token Estimation ────────────────────────────────────

CHARS_PER_TOKEN_ESTIMATE = 4


def estimate_tokens(text: str) -> int:
    """Rough token estimate using chars-per-token ratio."""
    return len(text) // CHARS_PER_TOKEN_ESTIMATE
