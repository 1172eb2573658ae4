"""Script contexts, the background context pool and the script interpreter loop."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Callable, Mapping, MutableSequence, Sequence, Union

from tilestage.banks import BankedMemory, BankPtr, ByteStack
from tilestage.mathutil import Pos, Vector2D

__all__ = [
    "MovementType",
    "ScriptContext",
    "ScriptCommand",
    "SceneState",
    "ScriptRunner",
    "MAX_SCENE_STATES",
    "MAX_BG_SCRIPT_CONTEXTS",
    "MAX_SCRIPT_CONTEXTS",
    "STACK_SIZE",
    "NUM_VARIABLES",
    "TMP_VAR_1",
    "TMP_VAR_2",
    "MAIN_CMD_BUDGET",
    "BG_CMD_BUDGET",
]

MAX_SCENE_STATES = 8
MAX_BG_SCRIPT_CONTEXTS = 11
MAX_SCRIPT_CONTEXTS = 12
STACK_SIZE = 8
NUM_VARIABLES = 500
TMP_VAR_1 = 100
TMP_VAR_2 = 101
MAIN_CMD_BUDGET = 255
BG_CMD_BUDGET = 2


class MovementType(IntEnum):
    """Axis order used when moving an actor to a destination."""

    HORIZONTAL = 0
    VERTICAL = 1
    DIAGONAL = 2


UpdateFn = Callable[["ScriptRunner"], bool]
CommandFn = Callable[["ScriptRunner", bytes], None]


@dataclass
class ScriptContext:
    """Execution state of one running script."""

    actor_move_dest_x: int = 0
    actor_move_dest_y: int = 0
    script_update_fn: UpdateFn | None = None
    script_start_ptr: int = 0
    script_ptr: int = 0
    script_ptr_x: int = 0
    script_ptr_y: int = 0
    script_ptr_bank: int = 0
    wait_time: int = 0
    script_await_next_frame: bool = False
    script_actor: int = 0
    owner: int = 0
    actor_move_cols: int = 0
    actor_move_type: MovementType = MovementType.HORIZONTAL
    tmp_1: int = 0
    tmp_2: int = 0


@dataclass(frozen=True)
class ScriptCommand:
    """A script command handler and the number of argument bytes it takes."""

    fn: CommandFn
    args_len: int = 0


@dataclass
class SceneState:
    """A saved scene and player placement."""

    scene_index: int = 0
    player_pos: Pos = field(default_factory=Pos)
    player_dir: Vector2D = field(default_factory=Vector2D)


@dataclass(frozen=True)
class _Frame:
    ptr: int
    bank: int
    start_ptr: int


Commands = Union[Mapping[int, ScriptCommand], Sequence[ScriptCommand]]


class ScriptRunner:
    """Runs bytecode scripts stored in banked memory on a set of contexts.

    Context 0 is the main script; contexts 1..11 are background scripts
    handed out from a pool.
    """

    def __init__(
        self,
        memory: BankedMemory,
        commands: Commands,
        variables: MutableSequence[int] | None = None,
    ) -> None:
        self.memory = memory
        self.commands = commands
        self.variables: MutableSequence[int] = (
            variables if variables is not None else [0] * NUM_VARIABLES
        )
        self.ctxs = [ScriptContext() for _ in range(MAX_SCRIPT_CONTEXTS)]
        self.active = ScriptContext()
        self.active_index = 0
        self.pool = ByteStack(MAX_BG_SCRIPT_CONTEXTS)
        self.main_ctx_actor = 0
        self.cmd_args = b""
        self.cmd_args_len = 0
        self.call_stack: list[_Frame] = []
        self.ctx_cmd_remaining = 5
        self.timer_duration = 0
        self.timer_time = 0
        self.timer_ptr = BankPtr()
        self.on_main_start: Callable[[], None] | None = None
        self.pool_reset()

    @property
    def main_running(self) -> bool:
        """Whether the main script context holds a script."""
        return bool(self.ctxs[0].script_ptr_bank)

    def start(self, events_ptr: BankPtr) -> None:
        """Load a script into the main context; it runs on the next restore."""
        if self.on_main_start is not None:
            self.on_main_start()
        self.variables[TMP_VAR_1] = 0
        self.variables[TMP_VAR_2] = 0
        ctx = self.ctxs[0]
        ctx.script_ptr_bank = events_ptr.bank
        ctx.script_ptr = events_ptr.offset
        ctx.script_update_fn = None
        ctx.script_start_ptr = ctx.script_ptr

    def start_bg(self, events_ptr: BankPtr, owner: int) -> int:
        """Start a script in a free background context and run it at once.

        Returns the context index, or 0 if no context is free.
        """
        new_ctx = self.pool_next()
        if new_ctx:
            self.variables[TMP_VAR_1] = 0
            self.variables[TMP_VAR_2] = 0
            ctx = self.ctxs[new_ctx]
            ctx.script_ptr_bank = events_ptr.bank
            ctx.script_ptr = events_ptr.offset
            ctx.script_update_fn = None
            ctx.script_start_ptr = ctx.script_ptr
            ctx.owner = owner
            self.restore_ctx(new_ctx)
        return new_ctx

    def _command(self, index: int) -> ScriptCommand:
        try:
            return self.commands[index]
        except (KeyError, IndexError):
            raise ValueError(f"unknown script command: {index}") from None

    def update(self) -> None:
        """Run the active context until it waits, ends or uses up its budget."""
        while True:
            ctx = self.active
            ctx.script_await_next_frame = False

            if ctx.script_update_fn is not None and ctx.script_update_fn(self):
                ctx.script_update_fn = None

            if not ctx.script_ptr_bank or ctx.script_update_fn is not None:
                self.save_ctx()
                return

            index = self.memory.read_ubyte(ctx.script_ptr_bank, ctx.script_ptr)
            if index == 0:
                if self.call_stack:
                    self.stack_pop()
                    self.save_ctx()
                    return
                ctx.script_ptr_bank = 0
                ctx.script_ptr = 0
                ctx.script_actor = 0
                self.save_ctx()
                if self.active_index != 0:
                    self.pool_return(self.active_index, self.ctxs[self.active_index].owner)
                else:
                    self.main_ctx_actor = 0
                return

            command = self._command(index)
            self.cmd_args_len = command.args_len
            self.cmd_args = self.memory.read_bytes(
                ctx.script_ptr_bank, ctx.script_ptr + 1, command.args_len
            )
            initial_ptr = ctx.script_ptr
            command.fn(self, self.cmd_args)
            ctx = self.active
            if ctx.script_ptr == initial_ptr:
                ctx.script_ptr += 1 + command.args_len

            if (
                not ctx.script_await_next_frame
                and ctx.script_update_fn is None
                and self.ctx_cmd_remaining != 0
            ):
                self.ctx_cmd_remaining -= 1
                continue

            self.save_ctx()
            return

    def save_ctx(self) -> None:
        """Store the active context, with the temporary variables, in its slot."""
        self.ctxs[self.active_index] = replace(
            self.active,
            tmp_1=self.variables[TMP_VAR_1],
            tmp_2=self.variables[TMP_VAR_2],
        )

    def restore_ctx(self, i: int) -> None:
        """Make context ``i`` active and run it.

        Background contexts do not run while the main script is running.
        """
        stored = self.ctxs[i]
        if not stored.script_ptr_bank or (i != 0 and self.ctxs[0].script_ptr_bank):
            return
        self.ctx_cmd_remaining = MAIN_CMD_BUDGET if i == 0 else BG_CMD_BUDGET
        self.active_index = i
        self.active = replace(stored)
        self.variables[TMP_VAR_1] = stored.tmp_1
        self.variables[TMP_VAR_2] = stored.tmp_2
        self.update()

    def pool_next(self) -> int:
        """Take a free background context, or 0 if none is free."""
        return self.pool.pop() if len(self.pool) else 0

    def pool_return(self, ctx: int, owner: int) -> None:
        """Free context ``ctx`` if it still belongs to ``owner``."""
        if self.ctxs[ctx].owner != owner:
            return
        self.ctxs[ctx].script_ptr_bank = 0
        # A context may be released both by its script ending and by its owner.
        if ctx not in self.pool:
            self.pool.push(ctx)

    def pool_reset(self) -> None:
        """Free every background context."""
        self.pool = ByteStack(MAX_BG_SCRIPT_CONTEXTS, range(1, MAX_BG_SCRIPT_CONTEXTS + 1))
        for ctx in self.ctxs[1 : MAX_BG_SCRIPT_CONTEXTS + 1]:
            ctx.script_ptr_bank = 0

    def stack_push(self) -> None:
        """Save the position after the running command so a later end returns there."""
        if len(self.call_stack) >= STACK_SIZE:
            raise OverflowError("script call stack is full")
        ctx = self.active
        self.call_stack.append(
            _Frame(ctx.script_ptr + 1 + self.cmd_args_len, ctx.script_ptr_bank, ctx.script_start_ptr)
        )

    def stack_pop(self) -> None:
        """Resume the active context at the most recently saved position."""
        if not self.call_stack:
            raise IndexError("script call stack is empty")
        frame = self.call_stack.pop()
        ctx = self.active
        ctx.script_ptr = frame.ptr
        ctx.script_ptr_bank = frame.bank
        ctx.script_start_ptr = frame.start_ptr