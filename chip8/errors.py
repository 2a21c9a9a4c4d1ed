class Chip8Error(Exception):
    """base class of every failure surfaced by the interpreter"""


class OutOfBoundsFetch(Chip8Error):
    def __init__(self, pc):
        self.pc = pc
        super().__init__(f"Cannot fetch an opcode at 0x{pc:04x}: address outside of memory")


class StackOverflow(Chip8Error):
    def __init__(self, pc):
        self.pc = pc
        super().__init__(f"The CHIP-8 stack can contain at most 16 addresses. Limit exceeded at 0x{pc:04x}")


class StackUnderflow(Chip8Error):
    def __init__(self, pc):
        self.pc = pc
        super().__init__(f"Return from subroutine with an empty stack at 0x{pc:04x}")


class UnsupportedOpcode(Chip8Error):
    """not fatal: the cycle engine reports it and skips the instruction"""
    def __init__(self, opcode, pc):
        self.opcode, self.pc = opcode, pc
        super().__init__(f"Unsupported opcode 0x{opcode:04x} at 0x{pc:04x}")


class ProgramTooLarge(Chip8Error):
    def __init__(self, size, capacity):
        self.size, self.capacity = size, capacity
        super().__init__(f"The ROM is {size} bytes long but only {capacity} bytes are available")
