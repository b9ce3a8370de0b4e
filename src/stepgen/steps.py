"""Pipeline steps.

Every step has the signature ``(ai, dbs) -> Transcript``. The runner stores
the returned transcript in ``dbs.logs`` under the step function's name, which
is how later steps (gen_clarified_code, respec, fix_code) replay it.
"""

from stepgen.ai import AI
from stepgen.chat_to_files import extract_code_blocks, to_files
from stepgen.config import (
    ALL_OUTPUT_KEY,
    ENTRYPOINT_KEY,
    FEEDBACK_KEY,
    LEGACY_PROMPT_KEY,
    PROMPT_KEY,
    SPECIFICATION_KEY,
    UNIT_TESTS_KEY,
)
from stepgen.db import DBs
from stepgen.domain import Transcript, deserialize_messages
from stepgen.errors import NotFoundError
from stepgen.terminal import CancellationToken, run_entrypoint, sigint_cancels
from stepgen.utils import get_input, log, warn

CLARIFY_DONE = "Nothing more to clarify."

CLARIFY_FOLLOW_UP = """
Is anything else unclear? If yes, only answer in the form:
{remaining unclear areas} remaining questions.
{Next question}
If everything is sufficiently clear, only answer "Nothing more to clarify.\""""

MAKE_ASSUMPTIONS = "Make your own assumptions and state them explicitly before starting"

RESPEC_REITERATE = (
    "Based on the conversation so far, please reiterate the specification for the program. "
    "If there are things that can be improved, please incorporate the improvements. "
    "If you are satisfied with the specification, just write out the specification word by word again."
)

ENTRYPOINT_SYSTEM_PROMPT = (
    "You will get information about a codebase that is currently on disk in the current folder.\n"
    "From this you will answer with code blocks that includes all the necessary unix terminal commands "
    "to a) install dependencies b) run all necessary parts of the codebase (in parallel if necessary).\n"
    "Do not install globally. Do not use sudo.\n"
    "Do not explain the code, just give the commands.\n"
    "Do not use placeholders, use example values (like . for a folder argument) if necessary.\n"
)

FIX_CODE_INSTRUCTION = "Please fix any errors in the code above."


# ============================================
# Shared helpers
# ============================================


def setup_sys_prompt(dbs: DBs) -> str:
    return dbs.preprompts.read("generate") + "\nUseful to know:\n" + dbs.preprompts.read("philosophy")


def get_prompt(dbs: DBs) -> str:
    """Return the project prompt, falling back to the legacy main_prompt file."""
    if dbs.input.exists(PROMPT_KEY):
        return dbs.input.read(PROMPT_KEY)
    if dbs.input.exists(LEGACY_PROMPT_KEY):
        warn("Please put the prompt in the file `prompt`, not `main_prompt`")
        log()
        return dbs.input.read(LEGACY_PROMPT_KEY)
    raise NotFoundError(
        f"Please put your prompt in the file `{PROMPT_KEY}` in the project directory ({dbs.input.path})"
    )


def load_transcript(dbs: DBs, step_name: str) -> Transcript:
    """Replay the transcript an earlier step persisted under *step_name*.

    Raises NotFoundError when the step never ran, when the record is not a
    valid transcript, or when the step produced no messages.
    """
    if not dbs.logs.exists(step_name):
        raise NotFoundError(f"No transcript for step '{step_name}'; run it before this step")
    messages = deserialize_messages(dbs.logs.read(step_name), source=f"Transcript for step '{step_name}'")
    if not messages:
        raise NotFoundError(f"Transcript for step '{step_name}' is empty")
    return messages


def _last_content(messages: Transcript) -> str:
    return messages[-1].content


# ============================================
# Steps
# ============================================


def simple_gen(ai: AI, dbs: DBs) -> Transcript:
    """Generate the whole codebase from the prompt in one shot."""
    messages = ai.start(setup_sys_prompt(dbs), get_prompt(dbs))
    to_files(_last_content(messages), dbs.workspace)
    return messages


def clarify(ai: AI, dbs: DBs) -> Transcript:
    """Ask the model for clarifying questions and relay them to the operator."""
    messages = [ai.fsystem(dbs.preprompts.read("qa"))]
    user_input = get_prompt(dbs)

    while True:
        messages = ai.next(messages, user_input)
        reply = _last_content(messages).strip()

        if reply == CLARIFY_DONE:
            break

        if reply.lower().startswith("no"):
            log(CLARIFY_DONE)
            break

        log()
        user_input = get_input('(answer in text, or "c" to move on)')
        log()

        if not user_input or user_input == "c":
            log("(letting stepgen make its own assumptions)")
            log()
            messages = ai.next(messages, MAKE_ASSUMPTIONS)
            log()
            return messages

        user_input += CLARIFY_FOLLOW_UP

    log()
    return messages


def gen_clarified_code(ai: AI, dbs: DBs) -> Transcript:
    """Generate code from the clarify conversation, with a fresh system prompt."""
    replayed = load_transcript(dbs, clarify.__name__)

    messages = [ai.fsystem(setup_sys_prompt(dbs)), *replayed[1:]]
    messages = ai.next(messages, dbs.preprompts.read("use_qa"))

    to_files(_last_content(messages), dbs.workspace)
    return messages


def gen_spec(ai: AI, dbs: DBs) -> Transcript:
    """Generate a specification from the prompt and keep it in memory."""
    messages = [
        ai.fsystem(setup_sys_prompt(dbs)),
        ai.fsystem(f"Instructions: {get_prompt(dbs)}"),
    ]
    messages = ai.next(messages, dbs.preprompts.read("spec"))

    dbs.memory.write(SPECIFICATION_KEY, _last_content(messages))
    return messages


def respec(ai: AI, dbs: DBs) -> Transcript:
    messages = load_transcript(dbs, gen_spec.__name__)
    messages.append(ai.fsystem(dbs.preprompts.read("respec")))

    messages = ai.next(messages)
    messages = ai.next(messages, RESPEC_REITERATE)

    dbs.memory.write(SPECIFICATION_KEY, _last_content(messages))
    return messages


def gen_unit_tests(ai: AI, dbs: DBs) -> Transcript:
    """Generate unit tests based on the specification, that should work."""
    messages = [
        ai.fsystem(setup_sys_prompt(dbs)),
        ai.fuser(f"Instructions: {get_prompt(dbs)}"),
        ai.fuser(f"Specification:\n\n{dbs.memory.read(SPECIFICATION_KEY)}"),
    ]
    messages = ai.next(messages, dbs.preprompts.read("unit_tests"))

    dbs.memory.write(UNIT_TESTS_KEY, _last_content(messages))
    to_files(dbs.memory.read(UNIT_TESTS_KEY), dbs.workspace)
    return messages


def gen_code(ai: AI, dbs: DBs) -> Transcript:
    messages = [
        ai.fsystem(setup_sys_prompt(dbs)),
        ai.fuser(f"Instructions: {get_prompt(dbs)}"),
        ai.fuser(f"Specification:\n\n{dbs.memory.read(SPECIFICATION_KEY)}"),
        ai.fuser(f"Unit tests:\n\n{dbs.memory.read(UNIT_TESTS_KEY)}"),
    ]
    messages = ai.next(messages, dbs.preprompts.read("use_qa"))

    to_files(_last_content(messages), dbs.workspace)
    return messages


def gen_entrypoint(ai: AI, dbs: DBs) -> Transcript:
    """Ask for the shell commands that install and run the codebase."""
    messages = ai.start(
        ENTRYPOINT_SYSTEM_PROMPT,
        f"Information about the codebase:\n\n{dbs.workspace.read(ALL_OUTPUT_KEY)}",
    )
    log()

    blocks = extract_code_blocks(_last_content(messages))
    dbs.workspace.write(ENTRYPOINT_KEY, "\n".join(blocks))
    return messages


def execute_entrypoint(ai: AI, dbs: DBs, token: CancellationToken | None = None) -> Transcript:
    """Run workspace/run.sh after the operator confirms.

    Ctrl+C once stops the script and the step returns normally.
    """
    command = dbs.workspace.read(ENTRYPOINT_KEY)

    log("Do you want to execute this code?")
    log()
    log(command)
    log()
    log('If yes, press enter. Otherwise, type "no"')
    log()

    answer = get_input()
    if answer and answer.strip().lower() not in ("y", "yes"):
        log("Ok, not executing the code.")
        return []

    log("Executing the code...")
    log()
    log(
        "Note: If it does not work as expected, consider running the code in another way than above.",
        style="green",
    )
    log()
    log("You can press ctrl+c *once* to stop the execution.")
    log()

    token = token or CancellationToken()
    with sigint_cancels(token):
        exit_code = run_entrypoint(dbs.workspace.path, token)

    log()
    if exit_code is None:
        log("Execution cancelled.", style="yellow")
    elif exit_code:
        log(f"Execution failed with exit code {exit_code}.", style="red")
    else:
        log("Execution finished successfully.", style="green")
    log()
    return []


def use_feedback(ai: AI, dbs: DBs) -> Transcript:
    """Regenerate the codebase from the previous output plus operator feedback."""
    messages = [
        ai.fsystem(setup_sys_prompt(dbs)),
        ai.fuser(f"Instructions: {get_prompt(dbs)}"),
        ai.fassistant(dbs.workspace.read(ALL_OUTPUT_KEY)),
        ai.fsystem(dbs.preprompts.read("use_feedback")),
    ]
    messages = ai.next(messages, dbs.input.read(FEEDBACK_KEY))

    to_files(_last_content(messages), dbs.workspace)
    return messages


def fix_code(ai: AI, dbs: DBs) -> Transcript:
    # Reads the first message of the gen_code transcript, not its final reply.
    code_output = load_transcript(dbs, gen_code.__name__)[0].content

    messages = [
        ai.fsystem(setup_sys_prompt(dbs)),
        ai.fuser(f"Instructions: {get_prompt(dbs)}"),
        ai.fuser(code_output),
        ai.fsystem(dbs.preprompts.read("fix_code")),
    ]
    messages = ai.next(messages, FIX_CODE_INSTRUCTION)

    to_files(_last_content(messages), dbs.workspace)
    return messages
