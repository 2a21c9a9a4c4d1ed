import argparse
import sys

from chip8.constants import CPU_HZ, DEBUG, SCALE
from chip8.cpu import Chip8
from chip8.errors import Chip8Error
from chip8.screen import Screen
import pygame    # imported after screen, which silences the pygame banner


# conventional 4x4 layout:  1 2 3 4 / Q W E R / A S D F / Z X C V
#                     maps  1 2 3 C / 4 5 6 D / 7 8 9 E / A 0 B F
KEY_MAPPINGS = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def get_args(argv=None):
    parser = argparse.ArgumentParser(prog="chip8", description="CHIP-8 interpreter")
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    parser.add_argument("--hz", type=int, default=CPU_HZ, help="machine cycles per second")
    parser.add_argument("--scale", type=int, default=SCALE, help="size in pixels of a CHIP-8 pixel")
    return parser.parse_args(argv)


def handle_events(chip):
    """feed key events to the keypad, return False when the user asks to quit"""
    for event in pygame.event.get():
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                return False
            if event.key in KEY_MAPPINGS:
                chip.keypad.press(KEY_MAPPINGS[event.key])
        elif event.type == pygame.KEYUP and event.key in KEY_MAPPINGS:
            chip.keypad.release(KEY_MAPPINGS[event.key])
    return True


def main(argv=None):
    args = get_args(argv)
    chip = Chip8()
    try:
        chip.load_rom(args.file)
    except (OSError, Chip8Error) as err:
        sys.exit(f"Cannot load {args.file}: {err}")
    # pygame initialization
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_caption(args.file.split('/')[-1])
    screen = Screen(s=args.scale)
    # emulation loop
    run = True
    try:
        while run:
            clock.tick(args.hz)
            run = handle_events(chip)
            try:
                beep = chip.step()
            except Chip8Error as err:
                sys.exit(f"********** THE EMULATOR CRASHED: {err}\n{chip}")
            if beep:
                print("\a", end="", flush=True)    # the terminal bell stands in for a tone
                if DEBUG: print("BEEP")
            if chip.draw_flag:
                screen.render(chip.framebuffer)
                chip.draw_flag = False
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
