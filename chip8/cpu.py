# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
#
# COMPATIBILITY QUIRKS TABLE
# https://games.gulrak.net/cadmium/chip8-opcode-table.html
#
# MASTERING CHIP-8
# https://github.com/mattmikolay/chip-8/wiki/Mastering-CHIP%E2%80%908


import enum
import random
import sys
from collections import namedtuple
from functools import wraps

from chip8.constants import (
    DEBUG,
    FONT_START_ADDRESS,
    FONT_SPRITE_SIZE,
    INSTRUCTION_SIZE,
    REGISTERS_COUNT,
    ROM_START_ADDRESS,
    SCREEN_HEIGHT,
    SCREEN_WIDTH,
)
from chip8.errors import OutOfBoundsFetch, UnsupportedOpcode
from chip8.keypad import Keypad
from chip8.memory import Memory, Stack


# ******************** UTILITIES SECTION
def asm(msg):
    """decorator to print out the ASM of the instruction being called"""
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(self, ins):
            if DEBUG: print(f"mem_addr: 0x{self.pc:04x}    instruction: " + msg.format(**ins._asdict()))
            return fn(self, ins)
        wrapper_fn.asm = msg    # lets the disassembler reuse the same mnemonic
        return wrapper_fn
    return decorator

def random_byte():
    return random.randint(0, 255)


class Instruction(namedtuple("Instruction", "opcode family x y n nn nnn")):
    """an opcode split into every operand field it could carry"""
    __slots__ = ()

    @classmethod
    def from_opcode(cls, opcode):
        return cls(
            opcode=opcode,
            family=(opcode & 0xF000) >> 12,
            x=(opcode & 0x0F00) >> 8,
            y=(opcode & 0x00F0) >> 4,
            n=opcode & 0x000F,
            nn=opcode & 0x00FF,
            nnn=opcode & 0x0FFF,
        )


class State(enum.Enum):
    RUNNING = "running"
    AWAITING_KEY = "awaiting_key"


# ******************** CPU SECTION
class Chip8:
    def __init__(self, keypad=None, rng=None):
        self.mem = Memory()
        self.stack = Stack()
        self.v_regs = [0] * REGISTERS_COUNT
        self.pc = ROM_START_ADDRESS
        self.idx = 0    # specify where the sprites reside in memory
        self.dt = 0     # delay timer, active when non-zero
        self.st = 0     # sound timer, active when non-zero
        self.gfx = bytearray(SCREEN_WIDTH * SCREEN_HEIGHT)
        self.draw_flag = False
        self.state = State.RUNNING
        self.key_register = 0
        self.keys_at_wait = set()
        self.keypad = keypad if keypad is not None else Keypad()
        self.rng = rng if rng is not None else random_byte
        # families whose top nibble is polymorphic map to (sub-field mask, handlers)
        self.instructions = {
            0x0: (0x0FFF, {
                0x0E0: self._clear_screen,
                0x0EE: self._return,
            }),
            0x1: self._jump,
            0x2: self._call_addr,
            0x3: self._skip_if_eq,
            0x4: self._skip_if_not_eq,
            0x5: (0x000F, {
                0x0: self._skip_if_eq_regs,
            }),
            0x6: self._set_vx,
            0x7: self._add_to_vx,
            0x8: (0x000F, {
                0x0: self._set_vx_to_vy,
                0x1: self._set_vx_or_vy,
                0x2: self._set_vx_and_vy,
                0x3: self._set_vx_xor_vy,
                0x4: self._add_vx_vy,
                0x5: self._sub_vx_vy,
                0x6: self._shr,
                0x7: self._subn_vx_vy,
                0xE: self._shl,
            }),
            0x9: (0x000F, {
                0x0: self._skip_if_not_eq_regs,
            }),
            0xA: self._set_idx,
            0xB: self._jump_plus,
            0xC: self._random_byte_and,
            0xD: self._to_screen,
            0xE: (0x00FF, {
                0x9E: self._skip_if_pressed,
                0xA1: self._skip_if_not_pressed,
            }),
            0xF: (0x00FF, {
                0x07: self._set_vx_dt,
                0x0A: self._wait_keypress,
                0x15: self._set_dt_vx,
                0x18: self._set_st,
                0x1E: self._add_to_idx,
                0x29: self._select_char,
                0x33: self._bcd_repr,
                0x55: self._store_vregs,
                0x65: self._load_vregs,
            }),
        }

    def __str__(self):
        registers = f"PC_REGISTER:0x{self.pc:04x} | IDX_REGISTER:0x{self.idx:04x} | VARIABLE_REGISTERS:{self.v_regs}"
        stack = f"STACK:{self.stack!r}"
        timers = f"DELAY_TIMER:{self.dt} | SOUND_TIMER:{self.st}"
        flags = f"DRAW:{self.draw_flag} | STATE:{self.state.value}"
        return f"{registers}\n{stack}\n{timers}\n{flags}"

    @property
    def framebuffer(self):
        """read-only view over the 64x32 pixels, addressed as x + y*64"""
        return memoryview(self.gfx).toreadonly()

    @property
    def awaiting_key(self):
        return self.state is State.AWAITING_KEY

    # ********** LIFECYCLE
    def load(self, program):
        return self.mem.load(program)

    def load_rom(self, path):
        return self.mem.load_rom(path)

    def reset(self, keep_font=True):
        """bring every field back to its power-on value so the machine can run another ROM"""
        self.mem.clear(keep_fonts=keep_font)
        self.stack.clear()
        self.v_regs = [0] * REGISTERS_COUNT
        self.pc = ROM_START_ADDRESS
        self.idx = 0
        self.dt = 0
        self.st = 0
        self.gfx = bytearray(SCREEN_WIDTH * SCREEN_HEIGHT)
        self.draw_flag = False
        self.state = State.RUNNING
        self.key_register = 0
        self.keys_at_wait = set()
        self.keypad.release_all()

    # ********** INSTRUCTIONS
    @asm("CLS")
    def _clear_screen(self, ins):
        self.gfx = bytearray(SCREEN_WIDTH * SCREEN_HEIGHT)
        self.draw_flag = True
        self._goto_next_instruction()

    @asm("RET")
    def _return(self, ins):
        """return from a subroutine"""
        self.pc = self.stack.pop(self.pc)

    @asm("JP 0x{nnn:03x}")
    def _jump(self, ins):
        self.pc = ins.nnn

    @asm("CALL 0x{nnn:03x}")
    def _call_addr(self, ins):
        # the return address is the instruction following the call
        self.stack.push(self.pc + INSTRUCTION_SIZE, self.pc)
        self.pc = ins.nnn

    @asm("SE V{x:X}, {nn}")
    def _skip_if_eq(self, ins):
        self._skip_if(self.v_regs[ins.x] == ins.nn)

    @asm("SNE V{x:X}, {nn}")
    def _skip_if_not_eq(self, ins):
        self._skip_if(self.v_regs[ins.x] != ins.nn)

    @asm("SE V{x:X}, V{y:X}")
    def _skip_if_eq_regs(self, ins):
        self._skip_if(self.v_regs[ins.x] == self.v_regs[ins.y])

    @asm("SNE V{x:X}, V{y:X}")
    def _skip_if_not_eq_regs(self, ins):
        self._skip_if(self.v_regs[ins.x] != self.v_regs[ins.y])

    @asm("LD V{x:X}, {nn}")
    def _set_vx(self, ins):
        """set the value of one of the 16 variable registers, Vx"""
        self.v_regs[ins.x] = ins.nn
        self._goto_next_instruction()

    @asm("ADD V{x:X}, {nn}")
    def _add_to_vx(self, ins):
        """add to the value already present in Vx, VF is left untouched"""
        self.v_regs[ins.x] = (self.v_regs[ins.x] + ins.nn) & 0xFF
        self._goto_next_instruction()

    @asm("LD V{x:X}, V{y:X}")
    def _set_vx_to_vy(self, ins):
        self.v_regs[ins.x] = self.v_regs[ins.y]
        self._goto_next_instruction()

    @asm("OR V{x:X}, V{y:X}")
    def _set_vx_or_vy(self, ins):
        self.v_regs[ins.x] |= self.v_regs[ins.y]
        self._goto_next_instruction()

    @asm("AND V{x:X}, V{y:X}")
    def _set_vx_and_vy(self, ins):
        self.v_regs[ins.x] &= self.v_regs[ins.y]
        self._goto_next_instruction()

    @asm("XOR V{x:X}, V{y:X}")
    def _set_vx_xor_vy(self, ins):
        self.v_regs[ins.x] ^= self.v_regs[ins.y]
        self._goto_next_instruction()

    # VF is written after Vx in every ALU instruction, so the flag wins when x is F

    @asm("ADD V{x:X}, V{y:X}")
    def _add_vx_vy(self, ins):
        """set Vx = Vx + Vy, VF = carry"""
        total = self.v_regs[ins.x] + self.v_regs[ins.y]
        self.v_regs[ins.x] = total & 0xFF   # keep only the lowest 8 bits
        self.v_regs[0xF] = 1 if total > 0xFF else 0
        self._goto_next_instruction()

    @asm("SUB V{x:X}, V{y:X}")
    def _sub_vx_vy(self, ins):
        """set Vx = Vx - Vy, VF = borrow"""
        diff = self.v_regs[ins.x] - self.v_regs[ins.y]
        self.v_regs[ins.x] = diff & 0xFF
        self.v_regs[0xF] = 1 if diff < 0 else 0
        self._goto_next_instruction()

    @asm("SUBN V{x:X}, V{y:X}")
    def _subn_vx_vy(self, ins):
        """set Vx = Vy - Vx, VF = borrow"""
        diff = self.v_regs[ins.y] - self.v_regs[ins.x]
        self.v_regs[ins.x] = diff & 0xFF
        self.v_regs[0xF] = 1 if diff < 0 else 0
        self._goto_next_instruction()

    @asm("SHR V{x:X}")
    def _shr(self, ins):
        """set Vx = Vx SHR 1, VF = the bit shifted out"""
        lsb = self.v_regs[ins.x] & 0x1
        self.v_regs[ins.x] >>= 1
        self.v_regs[0xF] = lsb
        self._goto_next_instruction()

    @asm("SHL V{x:X}")
    def _shl(self, ins):
        """set Vx = Vx SHL 1, VF = the bit shifted out"""
        msb = (self.v_regs[ins.x] & 0x80) >> 7
        self.v_regs[ins.x] = (self.v_regs[ins.x] << 1) & 0xFF
        self.v_regs[0xF] = msb
        self._goto_next_instruction()

    @asm("LD I, 0x{nnn:03x}")
    def _set_idx(self, ins):
        self.idx = ins.nnn
        self._goto_next_instruction()

    @asm("JP V0, 0x{nnn:03x}")
    def _jump_plus(self, ins):
        self.pc = self.v_regs[0x0] + ins.nnn

    @asm("RND V{x:X}, 0x{nn:02x}")
    def _random_byte_and(self, ins):
        self.v_regs[ins.x] = (self.rng() & 0xFF) & ins.nn
        self._goto_next_instruction()

    @asm("DRW V{x:X}, V{y:X}, {n}")
    def _to_screen(self, ins):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        x, y = self.v_regs[ins.x] % SCREEN_WIDTH, self.v_regs[ins.y] % SCREEN_HEIGHT
        collision = 0
        for row in range(ins.n):
            sprite_byte = self.mem[self.mem.wrap(self.idx + row)]
            # every pixel wraps around the screen edges on its own
            y_coordinate = (y + row) % SCREEN_HEIGHT
            for col in range(8):
                if not sprite_byte & (0x80 >> col):
                    continue
                x_coordinate = (x + col) % SCREEN_WIDTH
                position = x_coordinate + y_coordinate * SCREEN_WIDTH
                # an erased pixel is one that was ON and gets XORed with 1
                if self.gfx[position]:
                    collision = 1
                self.gfx[position] ^= 1
        self.v_regs[0xF] = collision
        self.draw_flag = True
        self._goto_next_instruction()

    @asm("SKP V{x:X}")
    def _skip_if_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is pressed"""
        self._skip_if(self.keypad.pressed(self.v_regs[ins.x] & 0xF))

    @asm("SKNP V{x:X}")
    def _skip_if_not_pressed(self, ins):
        """skip the following instruction if the key corresponding to the hex value stored in Vx is NOT pressed"""
        self._skip_if(not self.keypad.pressed(self.v_regs[ins.x] & 0xF))

    @asm("LD V{x:X}, DT")
    def _set_vx_dt(self, ins):
        self.v_regs[ins.x] = self.dt
        self._goto_next_instruction()

    @asm("LD V{x:X}, K")
    def _wait_keypress(self, ins):
        """
        suspend the machine until a key gets pressed, its value will be stored in Vx
        keys already held when the instruction starts must be released and pressed again to count
        """
        self.state = State.AWAITING_KEY
        self.key_register = ins.x
        self.keys_at_wait = set(self.keypad.held())

    @asm("LD DT, V{x:X}")
    def _set_dt_vx(self, ins):
        self.dt = self.v_regs[ins.x]
        self._goto_next_instruction()

    @asm("LD ST, V{x:X}")
    def _set_st(self, ins):
        self.st = self.v_regs[ins.x]
        self._goto_next_instruction()

    @asm("ADD I, V{x:X}")
    def _add_to_idx(self, ins):
        """set I = I + Vx, wrapping around at 16 bits"""
        self.idx = (self.idx + self.v_regs[ins.x]) & 0xFFFF
        self._goto_next_instruction()

    @asm("LD F, V{x:X}")
    def _select_char(self, ins):
        """set I to location of sprite for digit Vx"""
        self.idx = FONT_START_ADDRESS + self.v_regs[ins.x] * FONT_SPRITE_SIZE
        self._goto_next_instruction()

    @asm("LD B, V{x:X}")
    def _bcd_repr(self, ins):
        """store the hundreds digit of Vx in memory at I, the tens digit at I+1, the ones digit at I+2"""
        value = self.v_regs[ins.x]
        digits = (value // 100, (value // 10) % 10, value % 10)
        for offset, digit in enumerate(digits):
            self.mem[self.mem.wrap(self.idx + offset)] = digit
        self._goto_next_instruction()

    @asm("LD [I], V{x:X}")
    def _store_vregs(self, ins):
        """store registers V0 through Vx (included) in memory starting at location I"""
        for i in range(ins.x + 1):
            self.mem[self.mem.wrap(self.idx + i)] = self.v_regs[i]
        self._goto_next_instruction()

    @asm("LD V{x:X}, [I]")
    def _load_vregs(self, ins):
        """read registers V0 through Vx (included) from memory starting at location I"""
        for i in range(ins.x + 1):
            self.v_regs[i] = self.mem[self.mem.wrap(self.idx + i)]
        self._goto_next_instruction()

    def _goto_next_instruction(self):
        self.pc += INSTRUCTION_SIZE

    def _skip_if(self, condition):
        self.pc += 2 * INSTRUCTION_SIZE if condition else INSTRUCTION_SIZE

    # ********** CYCLE
    def fetch(self):
        """each instruction is two bytes long, stored big-endian"""
        if not 0 <= self.pc < len(self.mem) - 1:
            raise OutOfBoundsFetch(self.pc)
        return self.mem[self.pc] << 8 | self.mem[self.pc + 1]

    def decode(self, opcode):
        """split the opcode into its fields and return the handler along with them"""
        ins = Instruction.from_opcode(opcode)
        entry = self.instructions[ins.family]
        if isinstance(entry, tuple):
            mask, handlers = entry
            entry = handlers.get(opcode & mask)
            if entry is None:
                raise UnsupportedOpcode(opcode, self.pc)
        return entry, ins

    def disassemble(self, opcode):
        try:
            instruction, ins = self.decode(opcode)
        except UnsupportedOpcode:
            return f"DW 0x{opcode:04x}"
        return instruction.asm.format(**ins._asdict())

    def _poll_keypad(self):
        if self.keypad.untouched():
            self.keys_at_wait = set()
            return
        held = set(self.keypad.held())
        self.keys_at_wait &= held       # a released key counts again once pressed
        fresh = sorted(held - self.keys_at_wait)
        if fresh:
            self.v_regs[self.key_register] = fresh[0]
            self.state = State.RUNNING
            self._goto_next_instruction()

    def _tick_timers(self):
        """decrement both timers, return True on the cycle the sound timer reaches zero"""
        if self.dt > 0:
            self.dt -= 1
        beep = False
        if self.st > 0:
            beep = self.st == 1
            self.st -= 1
        return beep

    def step(self):
        """emulate one machine cycle (fetch opcode, decode opcode, execute opcode, update timers)"""
        if self.state is State.AWAITING_KEY:
            self._poll_keypad()
        else:
            opcode = self.fetch()
            try:
                instruction, ins = self.decode(opcode)
            except UnsupportedOpcode as uo:
                print(f"WARNING: {uo}, skipping it", file=sys.stderr)
                self._goto_next_instruction()
            else:
                instruction(ins)
        return self._tick_timers()
