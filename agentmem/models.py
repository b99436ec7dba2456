"""Pydantic models for agent memory backfill and the agent registry."""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional, Union

from agentmem import config

ConversationSource = Literal["claude", "codex"]
ALL_SOURCES: tuple[str, ...] = ("claude", "codex")

MAX_EXAMPLES = 20
DEFAULT_MAX_FILES = 5000

# ── Transcript models ──────────────────────────────────────────────

class DiscoveredConversation(BaseModel):
    source: ConversationSource
    transcriptPath: str
    workingDirectory: Optional[str] = None
    sessionId: Optional[str] = None
    firstMessageAt: Optional[int] = None  # epoch ms
    lastMessageAt: Optional[int] = None  # epoch ms
    messageCount: int = 0
    firstUserMessagePreview: Optional[str] = None
    modelNames: Optional[str] = None  # "Sonnet 4.5, gpt-5-codex"
    gitBranch: Optional[str] = None
    toolVersion: Optional[str] = None


# ── Backfill request / report ──────────────────────────────────────

class BackfillRequest(BaseModel):
    sources: list[ConversationSource] = Field(default_factory=lambda: list(ALL_SOURCES))
    dryRun: bool = True
    force: bool = False
    maxFiles: int = Field(default_factory=lambda: config.BACKFILL_MAX_FILES or DEFAULT_MAX_FILES)

    @field_validator("sources", mode="before")
    @classmethod
    def _default_sources(cls, value):
        if not value:
            return list(ALL_SOURCES)
        return list(dict.fromkeys(value))

    @field_validator("maxFiles", mode="before")
    @classmethod
    def _positive_max_files(cls, value):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            return config.BACKFILL_MAX_FILES or DEFAULT_MAX_FILES
        return value


class SourceStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    discovered: int = 0
    matched: int = 0
    unmapped: int = 0
    existing: int = 0
    inserted: int = 0


class BackfillReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    agent_id: str
    mode: Literal["dry-run", "apply"]
    sources: dict[str, SourceStats]
    total_discovered: int = 0
    total_matched: int = 0
    total_unmapped: int = 0
    total_existing: int = 0
    total_inserted: int = 0
    max_files_applied: int
    truncated: bool = False
    working_directories: tuple[str, ...] = ()
    active_sessions_seen: int = 0
    unmapped_examples: tuple[str, ...] = ()
    existing_examples: tuple[str, ...] = ()
    inserted_examples: tuple[str, ...] = ()


# ── Agent registry models ──────────────────────────────────────────

class AgentPreferences(BaseModel):
    defaultWorkingDirectory: Optional[str] = None


class AgentSessionRef(BaseModel):
    id: str = ""
    name: str = ""
    workingDirectory: Optional[str] = None


class Agent(BaseModel):
    id: str
    name: str = ""
    workingDirectory: Optional[str] = None
    sessions: list[AgentSessionRef] = Field(default_factory=list)
    preferences: AgentPreferences = Field(default_factory=AgentPreferences)


# ── Live session inventory ─────────────────────────────────────────

class LiveSession(BaseModel):
    id: str
    name: Optional[str] = None
    agentId: Optional[str] = None
    workingDirectory: Optional[str] = None
    createdAt: Optional[Union[str, int, float]] = None  # ISO string or epoch ms
    status: Optional[str] = None


class LiveSessionResult(BaseModel):
    sessions: list[LiveSession] = Field(default_factory=list)
    degraded: bool = False
    error: str = ""


class WorkingDirectoryResolution(BaseModel):
    workingDirectories: list[str] = Field(default_factory=list)
    activeSessionsSeen: int = 0
