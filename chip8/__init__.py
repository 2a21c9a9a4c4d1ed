from chip8.cpu import Chip8, Instruction, State
from chip8.errors import (
    Chip8Error,
    OutOfBoundsFetch,
    ProgramTooLarge,
    StackOverflow,
    StackUnderflow,
    UnsupportedOpcode,
)
from chip8.keypad import Keypad
from chip8.memory import Memory, Stack
