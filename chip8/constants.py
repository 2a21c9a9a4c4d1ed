import os


# ******************** FONTS
C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
            0x20, 0x60, 0x20, 0x20, 0x70,  # 1
            0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
            0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
            0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
            0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
            0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
            0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
            0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
            0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
            0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
            0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
            0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
            0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
            0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F
FONT_START_ADDRESS = 0x000
FONT_SPRITE_SIZE = 5    # each character font is made of 5 bytes


# ******************** MACHINE
MEMORY_SIZE = 4096
ROM_START_ADDRESS = 0x200
REGISTERS_COUNT = 16
STACK_SIZE = 16
KEYS_COUNT = 16
INSTRUCTION_SIZE = 0x2


# ******************** SCREEN
SCREEN_HEIGHT = 32
SCREEN_WIDTH = 64
SCALE = 10
BLUE = (80, 69, 155)
LIGHT_BLUE = (136, 126, 203)


# ******************** HOST
CPU_HZ = 500
DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False
