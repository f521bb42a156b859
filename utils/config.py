from __future__ import annotations
import dataclasses

@dataclasses.dataclass
class LLM:
    model: str
    credential_env: str = "OPENAI_API_KEY"
    search_model: str = "gpt-4o-mini-search-preview"
    retry_base_delay: float = 1.0

@dataclasses.dataclass
class CoTSettings:
    n_samples: int = 5
    temperature: float = 0.7
    mode: str = "few-shot"

@dataclasses.dataclass
class ReActSettings:
    max_turns: int = 50

@dataclasses.dataclass
class PlanExecuteSettings:
    max_replans: int = 20
    max_step_turns: int = 8

@dataclasses.dataclass
class Strategies:
    enabled: list[str] = dataclasses.field(default_factory=lambda: ["cot", "react", "rewoo", "plan-execute"])
    cot: CoTSettings = dataclasses.field(default_factory=CoTSettings)
    react: ReActSettings = dataclasses.field(default_factory=ReActSettings)
    plan_execute: PlanExecuteSettings = dataclasses.field(default_factory=PlanExecuteSettings)

@dataclasses.dataclass
class LoggingConsole:
    enabled: bool
    colour_enabled: bool
    level: str

@dataclasses.dataclass
class LoggingFile:
    enabled: bool
    level: str
    path: str
    file_rotation: bool
    max_bytes: int
    backup_count: int

@dataclasses.dataclass
class LoggingLibraries:
    LiteLLM: str
    httpx: str
    httpcore: str

@dataclasses.dataclass
class Logging:
    console: LoggingConsole
    file: LoggingFile
    libraries: LoggingLibraries

@dataclasses.dataclass
class Config:
    llm: LLM
    strategies: Strategies
    logging: Logging
