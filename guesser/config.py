"""Configuration for the guessing engine."""

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Optional

from dotenv import dotenv_values, find_dotenv


@dataclass
class DataConfig:
    """Paths to catalog files."""
    items_path: str = "data/items.jsonl"
    questions_path: str = "data/questions.jsonl"


@dataclass
class EngineConfig:
    """Termination policy and selection tuning."""
    # Questions required before a confident guess
    min_questions_before_guess: int = 6

    # Leader must beat the runner-up by more than this
    lead_margin: int = 4

    # Turn at which a zero leader score aborts the game
    signal_check_turn: int = 10

    # Questions below pool_size / divisor are too rare to trust
    rare_question_divisor: int = 9


@dataclass
class TransportConfig:
    """Response windows, in seconds."""
    question_timeout: float = 120.0
    continue_timeout: float = 30.0


@dataclass
class SimulationConfig:
    """Configuration for self-play simulation."""
    games: int = 100
    max_turns: int = 40
    noise: float = 0.0  # probability of a hedged answer
    seed: Optional[int] = None


@dataclass
class OutputConfig:
    """Configuration for output."""
    output_dir: str = "outputs"
    indent: int = 2


@dataclass
class Config:
    """Complete configuration."""
    data: DataConfig = field(default_factory=DataConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "WARNING"


# Environment variable -> (section, attribute, type)
ENV_OVERRIDES = {
    "GUESSER_ITEMS_PATH": ("data", "items_path", str),
    "GUESSER_QUESTIONS_PATH": ("data", "questions_path", str),
    "GUESSER_QUESTION_TIMEOUT": ("transport", "question_timeout", float),
    "GUESSER_CONTINUE_TIMEOUT": ("transport", "continue_timeout", float),
    "GUESSER_OUTPUT_DIR": ("output", "output_dir", str),
}


def read_environment() -> dict[str, str]:
    """Environment variables layered over a .env file in the working directory."""
    values: dict[str, str] = {}
    env_file = find_dotenv(usecwd=True)
    if env_file:
        values.update((k, v) for k, v in dotenv_values(env_file).items() if v is not None)
    values.update(os.environ)
    return values


def apply_env_overrides(config: Config, env: Optional[dict[str, str]] = None) -> Config:
    """Override config values from GUESSER_* variables."""
    env = os.environ if env is None else env
    for name, (section, attribute, cast) in ENV_OVERRIDES.items():
        value = env.get(name)
        if value:
            setattr(getattr(config, section), attribute, cast(value))

    log_level = env.get("GUESSER_LOG_LEVEL")
    if log_level:
        config.log_level = log_level.upper()

    return config


def load_config(path: Optional[str] = None, use_env: bool = True) -> Config:
    """Load configuration from a JSON file (or defaults), then the environment.

    With use_env, GUESSER_* variables from the environment or a .env file
    in the working directory override file values.
    """
    config = Config()

    if path is not None:
        with open(path) as f:
            data = json.load(f)

        if "data" in data:
            config.data = DataConfig(**data["data"])
        if "engine" in data:
            config.engine = EngineConfig(**data["engine"])
        if "transport" in data:
            config.transport = TransportConfig(**data["transport"])
        if "simulation" in data:
            config.simulation = SimulationConfig(**data["simulation"])
        if "output" in data:
            config.output = OutputConfig(**data["output"])
        if "log_level" in data:
            config.log_level = str(data["log_level"]).upper()

    if use_env:
        apply_env_overrides(config, read_environment())

    return config


def save_config(config: Config, path: str) -> None:
    """Save configuration to JSON file."""
    with open(path, "w") as f:
        json.dump(asdict(config), f, indent=2)
