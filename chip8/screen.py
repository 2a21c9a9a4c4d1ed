import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame

from chip8.constants import BLUE, LIGHT_BLUE, SCALE, SCREEN_HEIGHT, SCREEN_WIDTH


class Screen:
    """draws the cpu framebuffer on a pygame window, one scaled rect per lit pixel"""

    def __init__(self, w=SCREEN_WIDTH, h=SCREEN_HEIGHT, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.w, self.h, self.scale = w, h, s
        self.background = pygame.Color(*bg_color)
        self.foreground = pygame.Color(*fg_color)
        self.surface = pygame.display.set_mode(
            (w * self.scale, h * self.scale),
        )
        self.clear()

    def render(self, framebuffer):
        """paint every pixel of the buffer, then flip the display"""
        self.surface.fill(self.background)
        for y in range(self.h):
            for x in range(self.w):
                if framebuffer[x + y * self.w]:
                    pygame.draw.rect(
                        self.surface,
                        self.foreground,
                        (x * self.scale, y * self.scale, self.scale, self.scale)
                    )
        self.refresh()

    @staticmethod
    def refresh():
        pygame.display.flip()

    def clear(self):
        self.surface.fill(self.background)
        pygame.display.flip()
