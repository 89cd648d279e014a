"""Pygame front end for the CHIP-8 emulator."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pychip8.audio import DEFAULT_FREQUENCY, SquareWaveBeeper
from pychip8.bus import MemoryAccessError
from pychip8.cpu import CPUError, ProgramTooLargeError, disassemble
from pychip8.loader import RomFormatError, load_rom_from_path
from pychip8.system import Machine, MachineConfig, create_machine
from pychip8.utils import TraceRecorder, debug_enabled, debug_log
from pychip8.video import Renderer, palette_by_name


@dataclass
class AppConfig:
    """Configuration for the pygame front end."""

    rom_path: Optional[Path] = None
    scale: int = 10
    fullscreen: bool = False
    instructions_per_tick: int = 15
    palette: str = "mono"
    beep_frequency: float = DEFAULT_FREQUENCY
    enable_audio: bool = True
    timers_during_key_wait: bool = False
    seed: Optional[int] = None


class Chip8App:
    """Owns the machine and drives it from the pygame event loop."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._running = False
        self._machine: Machine | None = None
        self._renderer = Renderer(palette_by_name(config.palette))
        self._beeper: SquareWaveBeeper | None = None
        self._pygame = None
        self._perf_enabled = debug_enabled("perf")
        self._frame_counter = 0
        self._trace_recorder: TraceRecorder | None = None
        if debug_enabled("trace"):
            self._trace_recorder = TraceRecorder(512)

    @property
    def machine(self) -> Machine | None:
        return self._machine

    def create_machine(self, rom_path: Path | None = None) -> Machine:
        rom_path = rom_path or self._config.rom_path
        if rom_path is None:
            raise RuntimeError("ROM image is required; pass --rom <path>")
        try:
            image = load_rom_from_path(rom_path)
        except FileNotFoundError as exc:
            raise RuntimeError(f"ROM file not found: {rom_path}") from exc
        except (RomFormatError, ProgramTooLargeError) as exc:
            raise RuntimeError(f"Failed to load ROM {rom_path}: {exc}") from exc

        machine = create_machine(
            MachineConfig(
                rom_image=image.data,
                instructions_per_tick=self._config.instructions_per_tick,
                timers_during_key_wait=self._config.timers_during_key_wait,
                seed=self._config.seed,
                trace=self._trace_recorder,
            )
        )
        self._machine = machine
        return machine

    def run(self) -> None:
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required to run the UI") from exc

        machine = self._machine or self.create_machine()

        pygame.mixer.pre_init(44_100, -16, 1, 512)
        pygame.init()
        self._pygame = pygame
        self._initialise_audio(pygame)

        display = machine.display
        scale = max(1, self._config.scale)
        surface_size = (display.width * scale, display.height * scale)
        flags = pygame.FULLSCREEN if self._config.fullscreen else 0
        screen = pygame.display.set_mode(surface_size, flags)
        self._update_caption()

        clock = pygame.time.Clock()
        self._running = True
        last_time = time.perf_counter()

        try:
            while self._running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self._running = False
                    elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        self._enter_debug_shell(machine)
                        last_time = time.perf_counter()
                    elif event.type == pygame.KEYDOWN:
                        self.handle_key_event(pygame, event.key, pressed=True)
                    elif event.type == pygame.KEYUP:
                        self.handle_key_event(pygame, event.key, pressed=False)

                now = time.perf_counter()
                elapsed = now - last_time
                last_time = now
                self._advance(machine, elapsed)

                frame = self._renderer.render(display, scale=scale)
                screen.blit(frame.to_surface(), (0, 0))
                pygame.display.flip()

                if self._beeper is not None:
                    self._beeper.set_active(machine.state.sound_active and not machine.state.paused)

                clock.tick(_FRAME_RATE)
                self._frame_counter += 1
        finally:
            if self._beeper is not None:
                self._beeper.shutdown()
            pygame.quit()

    def handle_key_event(self, pygame, key_code: int, *, pressed: bool) -> None:
        machine = self._machine
        if machine is None:
            return
        name = pygame.key.name(key_code)
        lowered = name.lower()
        if debug_enabled("input"):
            debug_log("input", "event=%s pressed=%s", name, pressed)
        if pressed and self._handle_control_key(machine, lowered):
            return
        if pressed:
            machine.keypad.press_named(lowered)
        else:
            machine.keypad.release_named(lowered)

    def _handle_control_key(self, machine: Machine, name: str) -> bool:
        if name in _PAUSE_KEYS:
            paused = machine.state.toggle_pause()
            if debug_enabled("input"):
                debug_log("input", "paused=%s", paused)
        elif name in _FASTER_KEYS:
            machine.scheduler.speed_up()
        elif name in _SLOWER_KEYS:
            machine.scheduler.slow_down()
        else:
            return False
        self._update_caption()
        return True

    def _advance(self, machine: Machine, elapsed: float) -> None:
        start = time.perf_counter()
        try:
            report = machine.advance(elapsed)
        except (CPUError, MemoryAccessError) as exc:
            self._running = False
            if self._trace_recorder is not None:
                self._trace_recorder.dump("trace", limit=64)
            state = machine.state
            raise RuntimeError(
                f"Emulation halted at pc={state.pc:04X}: {exc}"
            ) from exc

        if self._perf_enabled:
            duration = time.perf_counter() - start
            debug_log(
                "perf",
                "frame=%d ticks=%d instructions=%d frame_ms=%.3f",
                self._frame_counter,
                report.ticks,
                report.instructions,
                duration * 1000.0,
            )

    def _initialise_audio(self, pygame) -> None:
        if not self._config.enable_audio:
            return
        if pygame.mixer.get_init() is None:
            try:
                pygame.mixer.init(44_100, -16, 1)
            except pygame.error as exc:  # pragma: no cover - best-effort path
                if debug_enabled("audio"):
                    debug_log("audio", "mixer_init_failed=%s", exc)
                return

        mixer_state = pygame.mixer.get_init()
        if mixer_state is None:
            if debug_enabled("audio"):
                debug_log("audio", "mixer_unavailable")
            return
        try:
            self._beeper = SquareWaveBeeper(
                sample_rate=mixer_state[0],
                frequency=self._config.beep_frequency,
            )
        except RuntimeError as exc:
            self._beeper = None
            if debug_enabled("audio"):
                debug_log("audio", "beeper_init_failed=%s", exc)

    def _update_caption(self) -> None:
        pygame = self._pygame
        machine = self._machine
        if pygame is None or machine is None:
            return
        status = " [paused]" if machine.state.paused else ""
        pygame.display.set_caption(
            f"CHIP-8 - {machine.scheduler.instructions_per_tick} ipt{status}"
        )

    # ------------------------------------------------------------------
    # Debug shell

    def _enter_debug_shell(self, machine: Machine) -> None:
        print("\n=== CHIP-8 Debug Menu ===")
        print("Enter command: [c]pu, [m]em, [l]ist, [d]isplay, [t]race, [r]eset, [q]uit, [Enter] resume")

        paused = True
        while paused and self._running:
            try:
                command = input("debug> ").strip().lower()
            except (EOFError, KeyboardInterrupt):
                print("Resuming emulator.")
                break

            if command in {"", "resume"}:
                paused = False
            elif command in {"c", "cpu"}:
                self._dump_cpu(machine)
            elif command.startswith("m"):
                spec = command[1:].strip()
                self._dump_memory(machine, spec if spec else None)
            elif command.startswith("l"):
                spec = command[1:].strip()
                self._dump_listing(machine, spec if spec else None)
            elif command in {"d", "display"}:
                self._dump_display(machine)
            elif command in {"t", "trace"}:
                self._dump_trace()
            elif command in {"r", "reset"}:
                machine.reset()
                print("Machine reset.")
            elif command in {"q", "quit", "exit"}:
                print("Exiting emulator.")
                self._running = False
                paused = False
            else:
                print("Commands: [Enter]=resume, [c]pu, [m]em, [l]ist, [d]isplay, [t]race, [r]eset, [q]uit")

        if self._pygame is not None:
            self._pygame.event.clear()

    def _dump_cpu(self, machine: Machine) -> None:
        state = machine.state
        print(
            "PC={:04X} I={:04X} SP={:02X} DT={:02X} ST={:02X} MODE={}".format(
                state.pc,
                state.i,
                state.sp,
                state.delay_timer,
                state.sound_timer,
                state.mode.name,
            )
        )
        print(" ".join(f"V{index:X}={value:02X}" for index, value in enumerate(state.v)))
        if state.sp:
            print("Stack: " + " ".join(f"{address:04X}" for address in state.stack[: state.sp]))
        else:
            print("Stack: -")

    def _dump_memory(self, machine: Machine, spec: str | None = None) -> None:
        try:
            start, length = _parse_range(spec, default_start=machine.state.pc, default_length=0x40)
        except ValueError:
            print("Usage: m [start_hex] [length]")
            return
        memory = machine.state.memory
        end = min(start + length, len(memory))
        for addr in range(start, end, 16):
            chunk = [memory.load8(addr + offset) for offset in range(16) if addr + offset < end]
            hex_part = " ".join(f"{value:02X}" for value in chunk)
            print(f"{addr:03X}: {hex_part}")

    def _dump_listing(self, machine: Machine, spec: str | None = None) -> None:
        try:
            start, count = _parse_range(spec, default_start=machine.state.pc, default_length=16)
        except ValueError:
            print("Usage: l [start_hex] [count]")
            return
        memory = machine.state.memory
        for addr in range(start, start + count * 2, 2):
            if addr + 1 >= len(memory):
                break
            opcode = memory.load16(addr)
            marker = ">" if addr == machine.state.pc else " "
            print(f"{marker}{addr:03X}: {opcode:04X}  {disassemble(opcode)}")

    def _dump_display(self, machine: Machine) -> None:
        for row in machine.display.format_rows():
            print(row)

    def _dump_trace(self, limit: int = 64) -> None:
        if self._trace_recorder is None:
            print("Trace recorder is disabled. Set CHIP8_DEBUG=trace to enable it.")
            return
        lines = list(self._trace_recorder.format_entries(limit))
        if not lines:
            print("Trace buffer is empty.")
            return
        print("Last trace entries:")
        for line in lines:
            print(f"  {line}")


def _parse_range(spec: str | None, *, default_start: int, default_length: int) -> tuple[int, int]:
    if not spec:
        return default_start, default_length
    parts = spec.split()
    start = int(parts[0], 16)
    length = int(parts[1], 0) if len(parts) > 1 else default_length
    if start < 0 or length <= 0:
        raise ValueError("range must be positive")
    return start, length


_FRAME_RATE = 60
_PAUSE_KEYS = frozenset({"space"})
_FASTER_KEYS = frozenset({"=", "+", "[+]"})
_SLOWER_KEYS = frozenset({"-", "[-]"})
