"""Opcode decoding for the CHIP-8 instruction set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Final, Mapping


class Op(Enum):
    """Every operation the CHIP-8 interpreter understands."""

    CLS = auto()
    RET = auto()
    SYS = auto()
    JP = auto()
    CALL = auto()
    SE_IMM = auto()
    SNE_IMM = auto()
    SE_REG = auto()
    LD_IMM = auto()
    ADD_IMM = auto()
    LD_REG = auto()
    OR = auto()
    AND = auto()
    XOR = auto()
    ADD_REG = auto()
    SUB = auto()
    SHR = auto()
    SUBN = auto()
    SHL = auto()
    SNE_REG = auto()
    LD_I = auto()
    JP_V0 = auto()
    RND = auto()
    DRW = auto()
    SKP = auto()
    SKNP = auto()
    LD_VX_DT = auto()
    LD_KEY = auto()
    LD_DT = auto()
    LD_ST = auto()
    ADD_I = auto()
    LD_FONT = auto()
    LD_BCD = auto()
    STORE_REGS = auto()
    LOAD_REGS = auto()


@dataclass(frozen=True)
class Instruction:
    """A decoded 16-bit instruction word and its operand fields."""

    opcode: int
    op: Op

    def __post_init__(self) -> None:
        if not 0 <= self.opcode <= 0xFFFF:
            raise ValueError(f"opcode out of range: {self.opcode}")

    @property
    def nnn(self) -> int:
        return self.opcode & 0x0FFF

    @property
    def n(self) -> int:
        return self.opcode & 0x000F

    @property
    def x(self) -> int:
        return (self.opcode >> 8) & 0x0F

    @property
    def y(self) -> int:
        return (self.opcode >> 4) & 0x0F

    @property
    def kk(self) -> int:
        return self.opcode & 0x00FF

    @property
    def handler(self) -> str:
        return f"op_{self.op.name.lower()}"

    def mnemonic(self) -> str:
        template = MNEMONICS[self.op]
        return template.format(nnn=self.nnn, n=self.n, x=self.x, y=self.y, kk=self.kk)


MNEMONICS: Final[Mapping[Op, str]] = {
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.SYS: "SYS {nnn:03X}",
    Op.JP: "JP {nnn:03X}",
    Op.CALL: "CALL {nnn:03X}",
    Op.SE_IMM: "SE V{x:X}, {kk:02X}",
    Op.SNE_IMM: "SNE V{x:X}, {kk:02X}",
    Op.SE_REG: "SE V{x:X}, V{y:X}",
    Op.LD_IMM: "LD V{x:X}, {kk:02X}",
    Op.ADD_IMM: "ADD V{x:X}, {kk:02X}",
    Op.LD_REG: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}",
    Op.SNE_REG: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, {nnn:03X}",
    Op.JP_V0: "JP V0, {nnn:03X}",
    Op.RND: "RND V{x:X}, {kk:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n:X}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_KEY: "LD V{x:X}, K",
    Op.LD_DT: "LD DT, V{x:X}",
    Op.LD_ST: "LD ST, V{x:X}",
    Op.ADD_I: "ADD I, V{x:X}",
    Op.LD_FONT: "LD F, V{x:X}",
    Op.LD_BCD: "LD B, V{x:X}",
    Op.STORE_REGS: "LD [I], V{x:X}",
    Op.LOAD_REGS: "LD V{x:X}, [I]",
}


# Classes whose operation is fully determined by the top nibble.
_SIMPLE_CLASSES: Final[Dict[int, Op]] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_IMM,
    0x4: Op.SNE_IMM,
    0x6: Op.LD_IMM,
    0x7: Op.ADD_IMM,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

_ALU_OPS: Final[Dict[int, Op]] = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_KEY_OPS: Final[Dict[int, Op]] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_MISC_OPS: Final[Dict[int, Op]] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_KEY,
    0x15: Op.LD_DT,
    0x18: Op.LD_ST,
    0x1E: Op.ADD_I,
    0x29: Op.LD_FONT,
    0x33: Op.LD_BCD,
    0x55: Op.STORE_REGS,
    0x65: Op.LOAD_REGS,
}


def decode(opcode: int) -> Instruction | None:
    """Decode ``opcode`` or return ``None`` when the bit pattern is not an instruction."""

    opcode &= 0xFFFF
    op = _decode_op(opcode)
    if op is None:
        return None
    return Instruction(opcode, op)


def _decode_op(opcode: int) -> Op | None:
    group = opcode >> 12
    if group in _SIMPLE_CLASSES:
        return _SIMPLE_CLASSES[group]
    if group == 0x0:
        if opcode == 0x00E0:
            return Op.CLS
        if opcode == 0x00EE:
            return Op.RET
        return Op.SYS
    if group == 0x5:
        return Op.SE_REG if opcode & 0x000F == 0 else None
    if group == 0x9:
        return Op.SNE_REG if opcode & 0x000F == 0 else None
    if group == 0x8:
        return _ALU_OPS.get(opcode & 0x000F)
    if group == 0xE:
        return _KEY_OPS.get(opcode & 0x00FF)
    if group == 0xF:
        return _MISC_OPS.get(opcode & 0x00FF)
    return None  # pragma: no cover - every nibble is handled above


def disassemble(opcode: int) -> str:
    """Return the mnemonic for ``opcode`` or a data directive when it is illegal."""

    instruction = decode(opcode)
    if instruction is None:
        return f"DW {opcode & 0xFFFF:04X}"
    return instruction.mnemonic()
