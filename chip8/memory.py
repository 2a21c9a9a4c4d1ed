from chip8.constants import (
    C8_FONTS,
    DEBUG,
    FONT_START_ADDRESS,
    MEMORY_SIZE,
    ROM_START_ADDRESS,
    STACK_SIZE,
)
from chip8.errors import ProgramTooLarge, StackOverflow, StackUnderflow


# ********** WRAPS A LIST TO REPRESENT A STACK WITH A LIMITED SIZE OF 16 ADDRESSES
class Stack:
    def __init__(self, size=STACK_SIZE):
        self.addr_list = [0] * size
        self.sp = 0     # number of slots in use

    def __len__(self):
        return self.sp

    def __repr__(self):
        return f"Stack(sp={self.sp}, addresses={[hex(a) for a in self.addr_list[:self.sp]]})"

    def push(self, address, pc=0):
        if self.sp >= len(self.addr_list):
            raise StackOverflow(pc)
        self.addr_list[self.sp] = address & 0xFFFF
        self.sp += 1

    def pop(self, pc=0):
        if self.sp == 0:
            raise StackUnderflow(pc)
        self.sp -= 1
        return self.addr_list[self.sp]

    def clear(self):
        self.addr_list = [0] * len(self.addr_list)
        self.sp = 0


# ********** WRAPS A BYTEARRAY TO REPRESENT THE MAIN MEMORY WITH A LIMITED SIZE OF 4KB
class Memory:
    def __init__(self, size=MEMORY_SIZE):
        self.inner = bytearray(size)
        self.load_fonts()

    def __len__(self):
        return len(self.inner)

    def __setitem__(self, key, value):
        self.inner[key] = value

    def __getitem__(self, index):
        return self.inner[index]

    def load_fonts(self):
        self.inner[FONT_START_ADDRESS:FONT_START_ADDRESS+len(C8_FONTS)] = bytes(C8_FONTS)

    def clear(self, keep_fonts=True):
        """zero every byte, then copy the pristine font table back in unless asked not to"""
        self.inner = bytearray(len(self.inner))
        if keep_fonts:
            self.load_fonts()

    def wrap(self, address):
        """fold an address derived from I back inside the addressable range"""
        return address % len(self.inner)

    def load(self, program):
        """overlay the program bytes starting at 0x200, reject programs that would not fit"""
        program = bytes(program)
        capacity = len(self.inner) - ROM_START_ADDRESS
        if len(program) > capacity:
            raise ProgramTooLarge(len(program), capacity)
        self.inner[ROM_START_ADDRESS:ROM_START_ADDRESS+len(program)] = program
        return len(program)

    def load_rom(self, path):
        """load ROM file from user specified path"""
        with open(path, mode='rb') as f:
            rom = f.read()
        size = self.load(rom)
        if DEBUG: print(f"The ROM at path {path} has been loaded successfully ({size} bytes)")
        return size

    def dump(self, start=0, end=None, width=16):
        """hex dump of memory[start:end], one row of `width` bytes per line"""
        end = len(self.inner) if end is None else min(end, len(self.inner))
        rows = []
        for row in range(start, end, width):
            chunk = self.inner[row:min(row+width, end)]
            rows.append(f"0x{row:04x}: " + " ".join(f"{b:02x}" for b in chunk))
        return "\n".join(rows)
