"""CHIP-8 instruction executor."""

from __future__ import annotations

import random
from dataclasses import dataclass

from pychip8.io import Keypad
from pychip8.utils import TraceRecorder, debug_enabled, debug_log
from pychip8.video import Display
from pychip8.video.font import glyph_address

from .opcodes import Instruction, decode
from .state import FLAG_REGISTER, STACK_DEPTH, ExecutionMode, MachineState

INSTRUCTION_SIZE = 2
SPRITE_WIDTH = 8


class CPUError(Exception):
    """Base error for fatal execution failures."""

    def __init__(self, message: str, *, pc: int, opcode: int | None = None) -> None:
        self.pc = pc
        self.opcode = opcode
        location = f"pc={pc:04X}"
        if opcode is not None:
            location += f" opcode={opcode:04X}"
        super().__init__(f"{message} ({location})")


class IllegalOpcodeError(CPUError):
    """Raised when the fetched word is not a CHIP-8 instruction."""

    def __init__(self, opcode: int, pc: int) -> None:
        super().__init__("illegal opcode", pc=pc, opcode=opcode)


class StackOverflowError(CPUError):
    """Raised when CALL would push a seventeenth return address."""

    def __init__(self, pc: int, opcode: int | None = None) -> None:
        super().__init__(f"call stack overflow (depth {STACK_DEPTH})", pc=pc, opcode=opcode)


class StackUnderflowError(CPUError):
    """Raised when RET executes with an empty call stack."""

    def __init__(self, pc: int, opcode: int | None = None) -> None:
        super().__init__("return with empty call stack", pc=pc, opcode=opcode)


@dataclass
class StepResult:
    """Outcome of a single :meth:`Executor.step` call."""

    pc: int
    instruction: Instruction | None = None
    executed: bool = False
    note: str = ""

    @property
    def opcode(self) -> int | None:
        return None if self.instruction is None else self.instruction.opcode


@dataclass(frozen=True)
class ExecutionContext:
    machine: MachineState
    display: Display
    keypad: Keypad


class Executor:
    """Fetches, decodes and executes one instruction per :meth:`step`.

    Each ``op_*`` handler receives the decoded instruction and the execution
    context and returns ``True`` when it wrote the program counter itself.
    Otherwise the counter advances by one instruction after the handler.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        trace: TraceRecorder | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.trace = trace
        self.instruction_count = 0

    def step(self, machine: MachineState, display: Display, keypad: Keypad) -> StepResult:
        """Execute one instruction, or resolve a pending key wait."""

        pc_before = machine.pc
        if machine.mode is ExecutionMode.PAUSED:
            return StepResult(pc_before, note="paused")
        if machine.mode is ExecutionMode.AWAITING_KEY:
            return self._resume_from_key_wait(machine, keypad)

        opcode = machine.memory.load16(pc_before)
        instruction = self._decode(opcode, pc_before)
        handler = getattr(self, instruction.handler, None)
        if handler is None:
            raise CPUError(f"handler '{instruction.handler}' not implemented", pc=pc_before, opcode=opcode)

        if self.trace is not None:
            self.trace.record_step(machine, opcode, mnemonic=instruction.mnemonic())
        if debug_enabled("cpu"):
            debug_log("cpu", "pc=%04X opcode=%04X %s", pc_before, opcode, instruction.mnemonic())

        context = ExecutionContext(machine, display, keypad)
        if not handler(instruction, context):
            self._advance(machine)
        self.instruction_count += 1
        return StepResult(pc_before, instruction, executed=True)

    # ------------------------------------------------------------------
    # Instruction handlers

    def op_cls(self, _: Instruction, ctx: ExecutionContext) -> bool:
        ctx.display.clear()
        return False

    def op_ret(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        if m.sp == 0:
            raise StackUnderflowError(m.pc, ins.opcode)
        m.sp -= 1
        m.pc = m.stack[m.sp]
        return True

    def op_sys(self, _: Instruction, __: ExecutionContext) -> bool:
        """Machine-code call; ignored."""

        return False

    def op_jp(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.pc = ins.nnn
        return True

    def op_call(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        if m.sp >= STACK_DEPTH:
            raise StackOverflowError(m.pc, ins.opcode)
        m.stack[m.sp] = (m.pc + INSTRUCTION_SIZE) & 0xFFFF
        m.sp += 1
        m.pc = ins.nnn
        return True

    def op_se_imm(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        self._skip_if(ctx.machine, ctx.machine.v[ins.x] == ins.kk)
        return False

    def op_sne_imm(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        self._skip_if(ctx.machine, ctx.machine.v[ins.x] != ins.kk)
        return False

    def op_se_reg(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        self._skip_if(ctx.machine, v[ins.x] == v[ins.y])
        return False

    def op_sne_reg(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        self._skip_if(ctx.machine, v[ins.x] != v[ins.y])
        return False

    def op_ld_imm(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.v[ins.x] = ins.kk
        return False

    def op_add_imm(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        v[ins.x] = (v[ins.x] + ins.kk) & 0xFF
        return False

    def op_ld_reg(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        v[ins.x] = v[ins.y]
        return False

    def op_or(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        v[ins.x] |= v[ins.y]
        return False

    def op_and(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        v[ins.x] &= v[ins.y]
        return False

    def op_xor(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        v[ins.x] ^= v[ins.y]
        return False

    def op_add_reg(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        total = v[ins.x] + v[ins.y]
        self._set_with_flag(v, ins.x, total & 0xFF, total > 0xFF)
        return False

    def op_sub(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        a, b = v[ins.x], v[ins.y]
        self._set_with_flag(v, ins.x, (a - b) & 0xFF, a >= b)
        return False

    def op_subn(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        a, b = v[ins.x], v[ins.y]
        self._set_with_flag(v, ins.x, (b - a) & 0xFF, b >= a)
        return False

    def op_shr(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        value = v[ins.x]
        self._set_with_flag(v, ins.x, value >> 1, bool(value & 0x01))
        return False

    def op_shl(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        v = ctx.machine.v
        value = v[ins.x]
        self._set_with_flag(v, ins.x, (value << 1) & 0xFF, bool(value & 0x80))
        return False

    def op_ld_i(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.i = ins.nnn
        return False

    def op_jp_v0(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        m.pc = (ins.nnn + m.v[0]) & 0xFFFF
        return True

    def op_rnd(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.v[ins.x] = self.rng.getrandbits(8) & ins.kk
        return False

    def op_drw(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        display = ctx.display
        sprite = m.memory.read_block(m.i, ins.n)
        origin_x = m.v[ins.x]
        origin_y = m.v[ins.y]

        collision = False
        for row, bits in enumerate(sprite):
            for column in range(SPRITE_WIDTH):
                if bits & (0x80 >> column):
                    if display.toggle(origin_x + column, origin_y + row):
                        collision = True
        m.v[FLAG_REGISTER] = 1 if collision else 0
        return False

    def op_skp(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        self._skip_if(m, ctx.keypad.is_down(m.v[ins.x]))
        return False

    def op_sknp(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        self._skip_if(m, not ctx.keypad.is_down(m.v[ins.x]))
        return False

    def op_ld_vx_dt(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.v[ins.x] = ctx.machine.delay_timer
        return False

    def op_ld_key(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        m.mode = ExecutionMode.AWAITING_KEY
        m.await_register = ins.x
        ctx.keypad.begin_capture(ins.x)
        if debug_enabled("input"):
            debug_log("input", "await_key V%X pc=%04X", ins.x, m.pc)
        # PC stays on this instruction until a key arrives.
        return True

    def op_ld_dt(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.delay_timer = ctx.machine.v[ins.x]
        return False

    def op_ld_st(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        ctx.machine.sound_timer = ctx.machine.v[ins.x]
        return False

    def op_add_i(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        m.i = (m.i + m.v[ins.x]) & 0xFFFF
        return False

    def op_ld_font(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        m.i = glyph_address(m.v[ins.x])
        return False

    def op_ld_bcd(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        value = m.v[ins.x]
        m.memory.write_block(m.i, bytes((value // 100, (value // 10) % 10, value % 10)))
        return False

    def op_store_regs(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        m.memory.write_block(m.i, bytes(m.v[: ins.x + 1]))
        return False

    def op_load_regs(self, ins: Instruction, ctx: ExecutionContext) -> bool:
        m = ctx.machine
        m.v[: ins.x + 1] = m.memory.read_block(m.i, ins.x + 1)
        return False

    # ------------------------------------------------------------------
    # Helpers

    def _decode(self, opcode: int, pc: int) -> Instruction:
        instruction = decode(opcode)
        if instruction is None:
            raise IllegalOpcodeError(opcode, pc)
        return instruction

    def _resume_from_key_wait(self, machine: MachineState, keypad: Keypad) -> StepResult:
        pc = machine.pc
        register = machine.await_register
        if register is None:
            # Mode was set without a target; nothing to store.
            machine.mode = ExecutionMode.RUNNING
            return StepResult(pc, note="await-key")
        if keypad.capture_register is None:
            keypad.begin_capture(register)

        key = keypad.take_captured()
        if key is None:
            return StepResult(pc, note="await-key")

        instruction = self._decode(machine.memory.load16(pc), pc)
        machine.v[register] = key
        machine.mode = ExecutionMode.RUNNING
        machine.await_register = None
        self._advance(machine)
        self.instruction_count += 1
        if debug_enabled("input"):
            debug_log("input", "key %X stored in V%X", key, register)
        return StepResult(pc, instruction, executed=True, note="key-captured")

    @staticmethod
    def _advance(machine: MachineState) -> None:
        machine.pc = (machine.pc + INSTRUCTION_SIZE) & 0xFFFF

    @staticmethod
    def _skip_if(machine: MachineState, condition: bool) -> None:
        if condition:
            Executor._advance(machine)

    @staticmethod
    def _set_with_flag(v: bytearray, register: int, result: int, flag: bool) -> None:
        v[register] = result
        v[FLAG_REGISTER] = 1 if flag else 0
