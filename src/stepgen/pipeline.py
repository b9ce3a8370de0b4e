"""Pipeline runner: named step configurations and sequential execution."""

from enum import Enum

from stepgen.ai import AI
from stepgen.db import DBs
from stepgen.domain import Step, Transcript, serialize_messages
from stepgen.errors import InvalidConfigurationError
from stepgen.steps import (
    clarify,
    execute_entrypoint,
    fix_code,
    gen_clarified_code,
    gen_code,
    gen_entrypoint,
    gen_spec,
    gen_unit_tests,
    respec,
    simple_gen,
    use_feedback,
)
from stepgen.utils import log


class Config(str, Enum):
    DEFAULT = "default"
    BENCHMARK = "benchmark"
    SIMPLE = "simple"
    TDD = "tdd"
    TDD_PLUS = "tdd+"
    CLARIFY = "clarify"
    RESPEC = "respec"
    EXECUTE_ONLY = "execute_only"
    EVALUATE = "evaluate"
    USE_FEEDBACK = "use_feedback"


STEPS: dict[Config, list[Step]] = {
    Config.DEFAULT: [clarify, gen_clarified_code, gen_entrypoint, execute_entrypoint],
    Config.BENCHMARK: [simple_gen, gen_entrypoint],
    Config.SIMPLE: [simple_gen, gen_entrypoint, execute_entrypoint],
    Config.TDD: [gen_spec, gen_unit_tests, gen_code, gen_entrypoint, execute_entrypoint],
    Config.TDD_PLUS: [
        gen_spec,
        gen_unit_tests,
        clarify,
        gen_clarified_code,
        gen_code,
        gen_entrypoint,
        execute_entrypoint,
    ],
    Config.CLARIFY: [clarify],
    Config.RESPEC: [respec],
    Config.EXECUTE_ONLY: [execute_entrypoint],
    Config.EVALUATE: [use_feedback, fix_code, gen_entrypoint, execute_entrypoint],
    Config.USE_FEEDBACK: [use_feedback, gen_entrypoint, execute_entrypoint],
}

_missing = set(Config) - set(STEPS)
if _missing:
    raise RuntimeError(f"Configurations without a step list: {sorted(c.value for c in _missing)}")

# Steps that never call the backend.
_OFFLINE_STEPS = {execute_entrypoint}


def resolve_config(config: "Config | str") -> Config:
    """Map a configuration name (case-insensitive) to its Config value."""
    if isinstance(config, Config):
        return config
    try:
        return Config(str(config).strip().lower())
    except ValueError:
        allowed = ", ".join(c.value for c in Config)
        raise InvalidConfigurationError(
            f"Invalid config: {config!r}. Allowed configs: {allowed}"
        ) from None


def get_steps(config: "Config | str") -> list[Step]:
    return list(STEPS[resolve_config(config)])


def requires_backend(config: "Config | str") -> bool:
    """True when any step in the configuration talks to the backend."""
    return any(step not in _OFFLINE_STEPS for step in get_steps(config))


def run(config: "Config | str", dbs: DBs, ai: AI) -> Transcript:
    """Execute every step of *config* in order and return the last transcript.

    After each step its transcript is written to dbs.logs under the step's
    name, before the next step starts. The first exception aborts the run;
    stores already written are left as they are.
    """
    steps = get_steps(config)

    messages: Transcript = []
    for step in steps:
        log(f"[{step.__name__}]", style="bold cyan")
        messages = step(ai, dbs)
        dbs.logs.write(step.__name__, serialize_messages(messages))

    return messages
